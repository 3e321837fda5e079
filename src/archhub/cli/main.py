"""archhub command-line entry point."""

from pathlib import Path
from typing import Optional

import click

from archhub import __version__
from archhub.cli.commands import feature_group, preview_cmd, project_group, validate_cmd
from archhub.cli.logging import configure_logging
from archhub.cli.registry import CLIContext
from archhub.config import HubConfig, set_config


@click.group()
@click.option(
    "--store",
    "store_root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Project store directory (overrides config).",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="TOML config file (replaces the default config lookup).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(__version__, prog_name="archhub")
@click.pass_context
def cli(ctx: click.Context, store_root: Optional[Path], config_file: Optional[Path], verbose: bool) -> None:
    """Collaborative architecture spec hub.

    Preview, validate and apply change requests to versioned project specs.
    Every command prints a JSON envelope.
    """
    config = HubConfig.from_env(str(config_file) if config_file is not None else None)
    if store_root is not None:
        config.store_root = store_root
    set_config(config)
    configure_logging("DEBUG" if verbose else config.log_level)
    ctx.obj = CLIContext(config=config)


cli.add_command(preview_cmd)
cli.add_command(validate_cmd)
cli.add_command(project_group)
cli.add_command(feature_group)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
