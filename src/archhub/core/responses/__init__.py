"""
Standard response envelopes for archhub operations.

Callers can use ``from archhub.core.responses import success_response``
or import from the sub-modules directly.

Sub-modules:
    types           - ErrorCode, ErrorType, ToolResponse, _build_meta
    builders        - success_response, error_response and error helpers
"""

# --- Core types ---
from archhub.core.responses.types import (  # noqa: F401
    RESPONSE_VERSION,
    ErrorCode,
    ErrorType,
    ToolResponse,
    _build_meta,
)

# --- Response builders ---
from archhub.core.responses.builders import (  # noqa: F401
    conflict_error,
    error_response,
    not_found_error,
    success_response,
    validation_error,
)

__all__ = [
    "RESPONSE_VERSION",
    "ErrorCode",
    "ErrorType",
    "ToolResponse",
    "conflict_error",
    "error_response",
    "not_found_error",
    "success_response",
    "validation_error",
]
