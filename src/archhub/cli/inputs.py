"""Reading JSON documents named on the command line."""

import json
from pathlib import Path
from typing import Any, Dict

from archhub.cli.output import emit_error
from archhub.core.responses.types import ErrorCode, ErrorType


def read_json_object(path: Path, label: str) -> Dict[str, Any]:
    """Load a JSON object from ``path`` or emit an INVALID_FORMAT error."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        emit_error(
            f"Cannot read {label} file: {exc}",
            code=ErrorCode.NOT_FOUND,
            error_type=ErrorType.NOT_FOUND,
            details={"path": str(path)},
        )
    except json.JSONDecodeError as exc:
        emit_error(
            f"{label.capitalize()} file is not valid JSON: {exc.msg}",
            code=ErrorCode.INVALID_FORMAT,
            error_type=ErrorType.VALIDATION,
            remediation=f"Fix the JSON syntax near line {exc.lineno}, column {exc.colno}.",
            details={"path": str(path)},
        )
    if not isinstance(data, dict):
        emit_error(
            f"{label.capitalize()} file must contain a JSON object, got {type(data).__name__}",
            code=ErrorCode.INVALID_FORMAT,
            error_type=ErrorType.VALIDATION,
            details={"path": str(path)},
        )
    return data
