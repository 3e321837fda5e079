"""Command-line interface for archhub."""
