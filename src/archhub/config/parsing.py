"""Parsing helpers for configuration values.

Values arrive as strings from the environment or as loosely typed TOML
scalars. Each helper returns the parsed value, or the supplied default with a
logged warning when the input cannot be used.
"""

import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_positive_int(value: Any, default: int, *, source: str) -> int:
    """Parse a strictly positive integer, falling back to ``default``."""
    if isinstance(value, bool):
        parsed = None
    else:
        try:
            parsed = int(str(value).strip())
        except ValueError:
            parsed = None
    if parsed is None or parsed <= 0:
        logger.warning(
            "Invalid value %r for %s: expected a positive integer. Falling back to %s",
            value,
            source,
            default,
        )
        return default
    return parsed


def _parse_optional_depth(value: Any, default: Optional[int], *, source: str) -> Optional[int]:
    """Parse a diff depth limit; zero or a negative number means unlimited."""
    if isinstance(value, bool):
        logger.warning("Invalid value %r for %s: expected an integer", value, source)
        return default
    try:
        parsed = int(str(value).strip())
    except ValueError:
        logger.warning("Invalid value %r for %s: expected an integer", value, source)
        return default
    return parsed if parsed > 0 else None


def _parse_positive_float(value: Any, default: float, *, source: str) -> float:
    if isinstance(value, bool):
        parsed = None
    else:
        try:
            parsed = float(str(value).strip())
        except ValueError:
            parsed = None
    if parsed is None or parsed <= 0:
        logger.warning(
            "Invalid value %r for %s: expected a positive number. Falling back to %s",
            value,
            source,
            default,
        )
        return default
    return parsed


def _normalize_log_level(value: Any, default: str) -> str:
    normalized = str(value).strip().upper()
    if normalized not in _VALID_LOG_LEVELS:
        logger.warning(
            "Invalid log level '%s'. Falling back to '%s'. Valid options: %s",
            value,
            default,
            ", ".join(sorted(_VALID_LOG_LEVELS)),
        )
        return default
    return normalized
