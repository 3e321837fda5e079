"""Architecture spec package.

Sub-modules:
- ``_constants``: Shared constants
- ``models``: Spec and project record models
"""

from archhub.core.spec._constants import (
    DEFAULT_LOCK_MINUTES,
    HTTP_METHODS,
    RELATION_TYPES,
    SPEC_COLLECTIONS,
)
from archhub.core.spec.models import (
    APPLICABLE_FEATURE_STATUSES,
    Endpoint,
    Entity,
    Feature,
    FeatureStatus,
    Field,
    Project,
    ProjectLock,
    Relation,
    Requirement,
    Spec,
    Version,
    spec_to_data,
)

__all__ = [
    "DEFAULT_LOCK_MINUTES",
    "HTTP_METHODS",
    "RELATION_TYPES",
    "SPEC_COLLECTIONS",
    "APPLICABLE_FEATURE_STATUSES",
    "Endpoint",
    "Entity",
    "Feature",
    "FeatureStatus",
    "Field",
    "Project",
    "ProjectLock",
    "Relation",
    "Requirement",
    "Spec",
    "Version",
    "spec_to_data",
]
