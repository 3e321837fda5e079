"""Spec validation command."""

from pathlib import Path

import click

from archhub.cli.inputs import read_json_object
from archhub.cli.logging import cli_command
from archhub.cli.output import emit_success
from archhub.core.changes.validator import validate_spec_structure
from archhub.core.validation.rules import validate_project_architecture


@click.command("validate")
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--architecture",
    is_flag=True,
    help="Run the full architecture checks and list auto-fix suggestions.",
)
@cli_command("validate")
def validate_cmd(spec_file: Path, architecture: bool) -> None:
    """Validate SPEC_FILE.

    By default only the structural invariants the change engine enforces are
    checked (duplicate names, invalid fields, duplicate endpoints, relation
    cycles). Findings are data, so the command succeeds either way.
    """
    spec = read_json_object(spec_file, "spec")

    if architecture:
        emit_success(validate_project_architecture(spec).to_dict())
        return

    conflicts = [c.to_dict() for c in validate_spec_structure(spec)]
    emit_success(valid=not conflicts, conflicts=conflicts)
