"""Core spec, change engine, validation, storage and workflow operations for archhub."""

from archhub.core.changes import (
    apply_change_request,
    compute_change_preview,
    generate_impact_summary,
    validate_spec_structure,
)
from archhub.core.validation import validate_project_architecture

__all__ = [
    "apply_change_request",
    "compute_change_preview",
    "generate_impact_summary",
    "validate_spec_structure",
    "validate_project_architecture",
]
