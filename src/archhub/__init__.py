"""archhub: collaborative architecture spec hub with previewable change requests."""

__version__ = "0.1.0"
