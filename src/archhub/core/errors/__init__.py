"""Unified error hierarchy for archhub.

All custom exception classes are defined in domain-specific modules within
this package. This __init__.py re-exports everything for convenient access.

Usage:
    from archhub.core.errors import ProjectLockedError, error_to_response
"""

# --- Base / Registry ---
from archhub.core.errors.base import ERROR_MAPPINGS, error_to_response

# --- Storage errors ---
from archhub.core.errors.storage import (
    InvalidIdentifierError,
    LockAcquisitionError,
    ProjectExistsError,
    ProjectNotFoundError,
    RecordCorrupted,
    VersionConflictError,
)

# --- Workflow errors ---
from archhub.core.errors.workflow import (
    FeatureNotFoundError,
    FeatureStateError,
    ProjectLockedError,
)

__all__ = [
    # Base / Registry
    "ERROR_MAPPINGS",
    "error_to_response",
    # Storage errors
    "InvalidIdentifierError",
    "LockAcquisitionError",
    "ProjectExistsError",
    "ProjectNotFoundError",
    "RecordCorrupted",
    "VersionConflictError",
    # Workflow errors
    "FeatureNotFoundError",
    "FeatureStateError",
    "ProjectLockedError",
]
