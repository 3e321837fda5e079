"""Result data models for change-request application."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ConflictType(str, Enum):
    """Category of a reported conflict."""

    NAMING = "naming"  # identifier or name collision
    MISSING_FIELD = "missing-field"  # unknown id, or a blank required field
    CIRCULAR_RELATION = "circular-relation"  # entity relation graph has a cycle
    VALIDATION = "validation"  # unsupported operation or malformed input


@dataclass
class ChangeConflict:
    """
    A detected reason an edit cannot be safely applied.

    Any conflict in a result forbids persisting the proposed spec.
    """

    type: ConflictType
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type.value, "message": self.message, "details": dict(self.details)}


@dataclass
class ChangeImpact:
    """What a successfully applied operation touched."""

    description: str
    affected_entities: Optional[List[str]] = None
    affected_endpoints: Optional[List[str]] = None
    affected_files: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"description": self.description}
        if self.affected_entities is not None:
            payload["affectedEntities"] = list(self.affected_entities)
        if self.affected_endpoints is not None:
            payload["affectedEndpoints"] = list(self.affected_endpoints)
        if self.affected_files is not None:
            payload["affectedFiles"] = list(self.affected_files)
        return payload


@dataclass
class ApplyResult:
    """Output of applying a change request to a working copy."""

    spec: Dict[str, Any]
    conflicts: List[ChangeConflict] = field(default_factory=list)
    impacts: List[ChangeImpact] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


@dataclass
class ChangePreview:
    """
    Current spec, proposed spec, their diff, and the apply findings.

    ``to_dict()`` yields the JSON-serializable wire shape.
    """

    current_spec: Dict[str, Any]
    proposed_spec: Dict[str, Any]
    diff: Dict[str, Any] = field(default_factory=dict)
    conflicts: List[ChangeConflict] = field(default_factory=list)
    impacts: List[ChangeImpact] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "currentSpec": self.current_spec,
            "proposedSpec": self.proposed_spec,
            "diff": self.diff,
            "conflicts": [c.to_dict() for c in self.conflicts],
            "impacts": [i.to_dict() for i in self.impacts],
        }


@dataclass
class ImpactSummary:
    """Aggregated counts and name lists for one apply. Derived, never stored."""

    total_changes: int = 0
    modified_entities: int = 0
    modified_endpoints: int = 0
    modified_files: int = 0
    new_entities: List[str] = field(default_factory=list)
    new_endpoints: List[str] = field(default_factory=list)
    removed_entities: List[str] = field(default_factory=list)
    removed_endpoints: List[str] = field(default_factory=list)
    has_conflicts: bool = False
    conflict_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        return {
            "totalChanges": data["total_changes"],
            "modifiedEntities": data["modified_entities"],
            "modifiedEndpoints": data["modified_endpoints"],
            "modifiedFiles": data["modified_files"],
            "newEntities": data["new_entities"],
            "newEndpoints": data["new_endpoints"],
            "removedEntities": data["removed_entities"],
            "removedEndpoints": data["removed_endpoints"],
            "hasConflicts": data["has_conflicts"],
            "conflictCount": data["conflict_count"],
        }
