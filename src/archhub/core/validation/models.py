"""Validation data models for project architecture checks."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ArchitectureIssue:
    """
    Structured finding from the architecture validator.

    Errors make a spec invalid; warnings flag conventions and best practices.
    """

    code: str  # Issue code (e.g., "DUPLICATE_ENTITY", "MISSING_TIMESTAMPS")
    message: str  # Human-readable description
    kind: str  # "error" or "warning"
    category: str  # entity, endpoint, schema, dependency / convention, best-practice
    severity: Optional[str] = None  # "critical", "high", "medium" (errors only)
    entity_id: Optional[str] = None
    endpoint_id: Optional[str] = None
    field: Optional[str] = None
    suggestion: Optional[str] = None  # Suggested replacement or remedy

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "type": self.kind,
            "code": self.code,
            "category": self.category,
            "message": self.message,
        }
        optional = {
            "severity": self.severity,
            "entityId": self.entity_id,
            "endpointId": self.endpoint_id,
            "field": self.field,
            "suggestion": self.suggestion,
        }
        payload.update({key: value for key, value in optional.items() if value is not None})
        return payload


@dataclass
class AutoFixSuggestion:
    """
    A candidate fix expressed as a change request.

    ``change_request`` is a plain ``{summary, operations}`` mapping that the
    apply workflow accepts unchanged.
    """

    id: str
    description: str
    category: str
    auto_fixable: bool
    change_request: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "category": self.category,
            "autoFixable": self.auto_fixable,
            "changeRequest": self.change_request,
        }


@dataclass
class ArchitectureReport:
    """
    Complete architecture validation result for a spec.
    """

    is_valid: bool = True
    errors: List[ArchitectureIssue] = field(default_factory=list)
    warnings: List[ArchitectureIssue] = field(default_factory=list)
    suggestions: List[AutoFixSuggestion] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "totalIssues": len(self.errors) + len(self.warnings),
            "criticalErrors": sum(1 for e in self.errors if e.severity == "critical"),
            "warnings": len(self.warnings),
            "autoFixableCount": sum(1 for s in self.suggestions if s.auto_fixable),
        }

    def find_suggestion(self, suggestion_id: str) -> Optional[AutoFixSuggestion]:
        for suggestion in self.suggestions:
            if suggestion.id == suggestion_id:
                return suggestion
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "summary": self.summary,
        }
