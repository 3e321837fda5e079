"""Error-to-ErrorCode mapping registry.

Provides a centralized mapping from exception types to (ErrorCode, ErrorType) tuples,
enabling consistent error response generation across the codebase.

Usage:
    from archhub.core.errors.base import error_to_response

    try:
        do_something()
    except Exception as e:
        result = error_to_response(e)
        if result is not None:
            return result
        raise  # Unknown error, re-raise
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Type

from archhub.core.errors.storage import (
    InvalidIdentifierError,
    LockAcquisitionError,
    ProjectExistsError,
    ProjectNotFoundError,
    RecordCorrupted,
    VersionConflictError,
)
from archhub.core.errors.workflow import (
    FeatureNotFoundError,
    FeatureStateError,
    ProjectLockedError,
)
from archhub.core.responses.types import (
    ErrorCode,
    ErrorType,
    ToolResponse,
)

ERROR_MAPPINGS: Dict[Type[Exception], Tuple[ErrorCode, ErrorType]] = {
    # --- Storage / concurrency errors ---
    InvalidIdentifierError: (ErrorCode.VALIDATION_ERROR, ErrorType.VALIDATION),
    LockAcquisitionError: (ErrorCode.LOCK_TIMEOUT, ErrorType.UNAVAILABLE),
    ProjectNotFoundError: (ErrorCode.NOT_FOUND, ErrorType.NOT_FOUND),
    ProjectExistsError: (ErrorCode.DUPLICATE_ENTRY, ErrorType.CONFLICT),
    VersionConflictError: (ErrorCode.VERSION_CONFLICT, ErrorType.CONFLICT),
    RecordCorrupted: (ErrorCode.INTERNAL_ERROR, ErrorType.INTERNAL),
    # --- Workflow errors ---
    ProjectLockedError: (ErrorCode.RESOURCE_BUSY, ErrorType.LOCKED),
    FeatureNotFoundError: (ErrorCode.NOT_FOUND, ErrorType.NOT_FOUND),
    FeatureStateError: (ErrorCode.CONFLICT, ErrorType.CONFLICT),
}


def error_to_response(exc: Exception) -> Optional[ToolResponse]:
    """Convert a known exception to a standard error response, or None if unknown.

    Looks up the exception's *exact* type in ERROR_MAPPINGS and, if found,
    generates a standardized error response using the mapped ErrorCode and ErrorType.

    Args:
        exc: The exception to convert.

    Returns:
        A ToolResponse, or None if the exception type is not registered in
        ERROR_MAPPINGS.
    """
    mapping = ERROR_MAPPINGS.get(type(exc))
    if mapping is None:
        return None

    from archhub.core.responses.builders import error_response

    code, error_type = mapping
    return error_response(str(exc), error_code=code, error_type=error_type)
