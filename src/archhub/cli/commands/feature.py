"""Feature review commands: propose a change request, then approve or reject it."""

from pathlib import Path

import click

from archhub.cli.inputs import read_json_object
from archhub.cli.logging import cli_command
from archhub.cli.output import emit_response, emit_success
from archhub.cli.registry import get_context
from archhub.core.errors.storage import ProjectNotFoundError
from archhub.core.responses.builders import not_found_error
from archhub.core.workflow import propose_feature, review_feature


@click.group("feature")
def feature_group() -> None:
    """Propose and review features before they are applied."""
    pass


@feature_group.command("propose")
@click.argument("project_id")
@click.argument("change_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--title", required=True, help="Short feature title.")
@click.option("--description", default="", help="Free-text description.")
@click.option("--user", "user_id", envvar="ARCHHUB_USER", required=True, help="Proposing collaborator.")
@click.pass_context
@cli_command("feature-propose")
def propose_cmd(
    ctx: click.Context,
    project_id: str,
    change_file: Path,
    title: str,
    description: str,
    user_id: str,
) -> None:
    """Record CHANGE_FILE as a feature of PROJECT_ID awaiting review."""
    change_request = read_json_object(change_file, "change request")
    emit_response(
        propose_feature(
            get_context(ctx).store,
            project_id,
            title,
            change_request,
            user_id,
            description=description,
        )
    )


@feature_group.command("review")
@click.argument("project_id")
@click.argument("feature_id")
@click.option("--approve/--reject", default=True, help="Approve (default) or reject the feature.")
@click.pass_context
@cli_command("feature-review")
def review_cmd(ctx: click.Context, project_id: str, feature_id: str, approve: bool) -> None:
    """Approve or reject FEATURE_ID."""
    emit_response(review_feature(get_context(ctx).store, project_id, feature_id, approve))


@feature_group.command("list")
@click.argument("project_id")
@click.pass_context
@cli_command("feature-list")
def list_cmd(ctx: click.Context, project_id: str) -> None:
    """List PROJECT_ID's features and their review status."""
    try:
        features = get_context(ctx).store.list_features(project_id)
    except ProjectNotFoundError:
        emit_response(not_found_error("Project", project_id))
        return
    emit_success(
        features=[
            {"id": f.id, "title": f.title, "status": f.status.value, "createdBy": f.created_by}
            for f in features
        ],
        count=len(features),
    )
