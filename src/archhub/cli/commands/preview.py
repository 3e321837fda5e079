"""Stateless change preview over a spec file."""

from pathlib import Path
from typing import Optional

import click

from archhub.cli.inputs import read_json_object
from archhub.cli.logging import cli_command, get_cli_logger
from archhub.cli.output import emit_success
from archhub.cli.registry import get_context
from archhub.core.changes.diff import diff_stats
from archhub.core.changes.preview import compute_change_preview
from archhub.core.workflow import preview_payload

logger = get_cli_logger()


@click.command("preview")
@click.argument("spec_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("change_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--max-depth", type=int, default=None, help="Limit diff recursion depth.")
@click.pass_context
@cli_command("preview")
def preview_cmd(
    ctx: click.Context,
    spec_file: Path,
    change_file: Path,
    max_depth: Optional[int],
) -> None:
    """Preview CHANGE_FILE applied to SPEC_FILE without persisting anything.

    Conflicts are reported in the payload; the command itself succeeds.

    Examples:
        archhub preview spec.json change.json
    """
    config = get_context(ctx).config
    spec = read_json_object(spec_file, "spec")
    change_request = read_json_object(change_file, "change request")

    preview = compute_change_preview(
        spec,
        change_request,
        max_depth=max_depth if max_depth is not None else config.diff_max_depth,
    )
    payload = preview_payload(preview)
    payload["stats"] = diff_stats(preview.diff)
    logger.debug("Previewed %s against %s", change_file, spec_file)
    emit_success(payload)
