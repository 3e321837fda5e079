"""Project store commands.

Projects live under the configured store directory (``--store``,
``ARCHHUB_STORE_ROOT`` or ``[storage] root``).
"""

from pathlib import Path
from typing import Optional

import click

from archhub.cli.inputs import read_json_object
from archhub.cli.logging import cli_command, get_cli_logger
from archhub.cli.output import emit_error, emit_response, emit_success
from archhub.cli.registry import get_context
from archhub.core.errors.base import error_to_response
from archhub.core.errors.storage import ProjectNotFoundError
from archhub.core.responses.builders import not_found_error
from archhub.core.validation.rules import validate_project_architecture
from archhub.core.workflow import (
    apply_autofix,
    apply_change,
    claim_project_lock,
    release_project_lock,
)

logger = get_cli_logger()

USER_OPTION = click.option(
    "--user",
    "user_id",
    envvar="ARCHHUB_USER",
    required=True,
    help="Collaborator id (or set ARCHHUB_USER).",
)


@click.group("project")
def project_group() -> None:
    """Project lifecycle, locking and version history."""
    pass


@project_group.command("init")
@click.argument("project_id")
@click.option("--name", default="", help="Display name (defaults to PROJECT_ID).")
@click.option(
    "--spec",
    "spec_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Initial spec document (defaults to an empty spec).",
)
@click.pass_context
@cli_command("project-init")
def init_cmd(ctx: click.Context, project_id: str, name: str, spec_file: Optional[Path]) -> None:
    """Create PROJECT_ID in the store."""
    store = get_context(ctx).store
    spec = read_json_object(spec_file, "spec") if spec_file is not None else None
    try:
        project = store.create_project(project_id, name=name, spec=spec)
    except ValueError as exc:
        emit_error(str(exc), code="VALIDATION_ERROR", error_type="validation")
    except Exception as exc:
        response = error_to_response(exc)
        if response is None:
            raise
        emit_response(response)
        return
    emit_success(project=project.model_dump(mode="json", by_alias=True))


@project_group.command("list")
@click.pass_context
@cli_command("project-list")
def list_cmd(ctx: click.Context) -> None:
    """List stored project ids."""
    projects = get_context(ctx).store.list_projects()
    emit_success(projects=projects, count=len(projects))


@project_group.command("show")
@click.argument("project_id")
@click.option("--architecture", is_flag=True, help="Include the architecture report.")
@click.pass_context
@cli_command("project-show")
def show_cmd(ctx: click.Context, project_id: str, architecture: bool) -> None:
    """Show PROJECT_ID with its current spec and lock."""
    store = get_context(ctx).store
    try:
        project = store.load_project(project_id)
    except ProjectNotFoundError:
        emit_response(not_found_error("Project", project_id))
        return

    data = {"project": project.model_dump(mode="json", by_alias=True)}
    if architecture:
        data["architecture"] = validate_project_architecture(project.spec).to_dict()
    emit_success(data)


@project_group.command("apply")
@click.argument("project_id")
@click.argument(
    "change_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=False,
)
@USER_OPTION
@click.option("--feature", "feature_id", default=None, help="Apply an approved feature's change request.")
@click.option("--dry-run", is_flag=True, help="Compute the result without persisting.")
@click.pass_context
@cli_command("project-apply")
def apply_cmd(
    ctx: click.Context,
    project_id: str,
    change_file: Optional[Path],
    user_id: str,
    feature_id: Optional[str],
    dry_run: bool,
) -> None:
    """Apply CHANGE_FILE (or --feature) to PROJECT_ID as a new version.

    Persisting requires that no other collaborator holds the project lock.
    Any conflict refuses the whole request.

    Examples:
        archhub project apply shop change.json --user alice
        archhub project apply shop --feature 01J... --user alice
    """
    if change_file is None and feature_id is None:
        emit_error(
            "Provide a CHANGE_FILE or --feature",
            code="MISSING_REQUIRED",
            error_type="validation",
        )
    cli_ctx = get_context(ctx)
    change_request = read_json_object(change_file, "change request") if change_file is not None else None
    emit_response(
        apply_change(
            cli_ctx.store,
            project_id,
            change_request,
            user_id,
            persist=not dry_run,
            feature_id=feature_id,
            max_depth=cli_ctx.config.diff_max_depth,
        )
    )


@project_group.command("autofix")
@click.argument("project_id")
@click.argument("suggestion_id")
@USER_OPTION
@click.option("--dry-run", is_flag=True, help="Compute the result without persisting.")
@click.pass_context
@cli_command("project-autofix")
def autofix_cmd(ctx: click.Context, project_id: str, suggestion_id: str, user_id: str, dry_run: bool) -> None:
    """Apply architecture suggestion SUGGESTION_ID to PROJECT_ID."""
    cli_ctx = get_context(ctx)
    emit_response(
        apply_autofix(
            cli_ctx.store,
            project_id,
            suggestion_id,
            user_id,
            persist=not dry_run,
            max_depth=cli_ctx.config.diff_max_depth,
        )
    )


@project_group.command("lock")
@click.argument("project_id")
@USER_OPTION
@click.option("--minutes", type=int, default=None, help="Lock duration (default from config).")
@click.pass_context
@cli_command("project-lock")
def lock_cmd(ctx: click.Context, project_id: str, user_id: str, minutes: Optional[int]) -> None:
    """Claim (or renew) the project lock for --user."""
    cli_ctx = get_context(ctx)
    duration = minutes if minutes is not None else cli_ctx.config.default_lock_minutes
    emit_response(claim_project_lock(cli_ctx.store, project_id, user_id, duration))


@project_group.command("unlock")
@click.argument("project_id")
@USER_OPTION
@click.pass_context
@cli_command("project-unlock")
def unlock_cmd(ctx: click.Context, project_id: str, user_id: str) -> None:
    """Release the project lock held by --user."""
    emit_response(release_project_lock(get_context(ctx).store, project_id, user_id))


@project_group.command("versions")
@click.argument("project_id")
@click.option("--number", type=int, default=None, help="Show a single version in full.")
@click.pass_context
@cli_command("project-versions")
def versions_cmd(ctx: click.Context, project_id: str, number: Optional[int]) -> None:
    """List PROJECT_ID's versions, or show one with --number."""
    store = get_context(ctx).store
    try:
        if number is not None:
            version = store.get_version(project_id, number)
            if version is None:
                emit_response(not_found_error("Version", str(number)))
                return
            emit_success(version=version.model_dump(mode="json", by_alias=True))
            return
        versions = store.list_versions(project_id)
    except ProjectNotFoundError:
        emit_response(not_found_error("Project", project_id))
        return

    emit_success(
        project_id=project_id,
        versions=[
            {
                "number": v.number,
                "createdBy": v.created_by,
                "createdAt": v.created_at.isoformat(),
                "changed": bool(v.diff),
            }
            for v in versions
        ],
        count=len(versions),
    )
