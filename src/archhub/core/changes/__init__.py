"""Change-request engine package.

Re-exports the public API::

    from archhub.core.changes import apply_change_request, compute_change_preview, ...

Sub-modules:
- ``models``: Conflict, impact, preview and summary result types
- ``operations``: The closed set of change operations and their parsing
- ``applier``: Applies a change request to a copy of a spec
- ``validator``: Structural invariant checks run after every apply
- ``diff``: Structural document diff
- ``preview``: Preview composition, impact summary and impacted files
"""

from archhub.core.changes.models import (
    ApplyResult,
    ChangeConflict,
    ChangeImpact,
    ChangePreview,
    ConflictType,
    ImpactSummary,
)
from archhub.core.changes.operations import (
    OPERATION_TYPES,
    AddEndpoint,
    AddEntity,
    AddRequirement,
    ChangeOperation,
    ChangeRequest,
    RemoveEndpoint,
    RemoveEntity,
    RemoveRequirement,
    UpdateEndpoint,
    UpdateEntity,
    UpdateFolderStructure,
    UpdateRequirement,
    parse_operation,
)
from archhub.core.changes.validator import validate_spec_structure
from archhub.core.changes.applier import apply_change_request, sanitize_route_path
from archhub.core.changes.diff import diff_documents, diff_stats
from archhub.core.changes.preview import (
    collect_impacted_files,
    compute_change_preview,
    generate_impact_summary,
)

__all__ = [
    # Models
    "ApplyResult",
    "ChangeConflict",
    "ChangeImpact",
    "ChangePreview",
    "ConflictType",
    "ImpactSummary",
    # Operations
    "OPERATION_TYPES",
    "AddEndpoint",
    "AddEntity",
    "AddRequirement",
    "ChangeOperation",
    "ChangeRequest",
    "RemoveEndpoint",
    "RemoveEntity",
    "RemoveRequirement",
    "UpdateEndpoint",
    "UpdateEntity",
    "UpdateFolderStructure",
    "UpdateRequirement",
    "parse_operation",
    # Engine
    "apply_change_request",
    "sanitize_route_path",
    "validate_spec_structure",
    "diff_documents",
    "diff_stats",
    "collect_impacted_files",
    "compute_change_preview",
    "generate_impact_summary",
]
