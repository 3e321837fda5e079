"""JSON envelope output for CLI commands.

Every command prints exactly one ``ToolResponse`` envelope to stdout.
Error envelopes exit with status 1.
"""

import json
import sys
from dataclasses import asdict
from typing import Any, Mapping, NoReturn, Optional

import click

from archhub.core.responses.builders import error_response, success_response
from archhub.core.responses.types import ToolResponse


def _echo(response: ToolResponse) -> None:
    click.echo(json.dumps(asdict(response), indent=2, default=str))


def emit_response(response: ToolResponse) -> None:
    """Print a prebuilt envelope, exiting with status 1 when it is an error."""
    _echo(response)
    if not response.success:
        sys.exit(1)


def emit_success(data: Optional[Mapping[str, Any]] = None, **fields: Any) -> None:
    _echo(success_response(data, **fields))


def emit_error(
    message: str,
    code: str = "INTERNAL_ERROR",
    error_type: str = "internal",
    remediation: Optional[str] = None,
    details: Optional[Mapping[str, Any]] = None,
) -> NoReturn:
    """Print an error envelope and exit with status 1."""
    _echo(
        error_response(
            message,
            error_code=code,
            error_type=error_type,
            remediation=remediation,
            details=details,
        )
    )
    sys.exit(1)
