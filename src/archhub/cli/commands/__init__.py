"""CLI command groups.

The CLI is organized into domain groups (`project`, `feature`) plus the
stateless `preview` and `validate` commands that work on plain files.
"""

from archhub.cli.commands.feature import feature_group
from archhub.cli.commands.preview import preview_cmd
from archhub.cli.commands.project import project_group
from archhub.cli.commands.validate import validate_cmd

__all__ = [
    "feature_group",
    "preview_cmd",
    "project_group",
    "validate_cmd",
]
