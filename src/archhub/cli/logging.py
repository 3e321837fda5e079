"""Logging setup and command instrumentation for the CLI."""

import functools
import logging
import sys
from typing import Any, Callable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])

_HANDLER_NAME = "archhub-cli"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Route ``archhub`` log records to stderr at ``level``.

    Calling it again replaces the handler installed by a previous call.
    """
    package_logger = logging.getLogger("archhub")
    for handler in list(package_logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    package_logger.addHandler(handler)
    package_logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def get_cli_logger() -> logging.Logger:
    return logging.getLogger("archhub.cli")


def cli_command(name: str) -> Callable[[_F], _F]:
    """Log a command's invocation and turn unexpected failures into an error envelope.

    ``SystemExit`` raised by ``emit_error`` passes through untouched.
    """

    def decorator(func: _F) -> _F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_cli_logger()
            logger.debug("Running command %s", name, extra={"command": name})
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                from archhub.cli.output import emit_error

                logger.exception("Command %s failed", name)
                emit_error(
                    f"Command '{name}' failed: {exc}",
                    code="INTERNAL_ERROR",
                    error_type="internal",
                    details={"command": name, "exception": type(exc).__name__},
                )

        return wrapper  # type: ignore[return-value]

    return decorator
