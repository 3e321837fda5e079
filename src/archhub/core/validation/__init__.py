"""
Architecture validation for project specs.

Provides consistency and best-practice checks with auto-fix suggestions
expressed as change requests.
"""

from archhub.core.validation.fixes import generate_crud_operations, get_autofix_suggestions
from archhub.core.validation.models import (
    ArchitectureIssue,
    ArchitectureReport,
    AutoFixSuggestion,
)
from archhub.core.validation.naming import to_camel_case, to_pascal_case
from archhub.core.validation.rules import validate_project_architecture

__all__ = [
    # Models
    "ArchitectureIssue",
    "ArchitectureReport",
    "AutoFixSuggestion",
    # Functions
    "generate_crud_operations",
    "get_autofix_suggestions",
    "to_camel_case",
    "to_pascal_case",
    "validate_project_architecture",
]
