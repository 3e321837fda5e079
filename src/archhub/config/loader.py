"""HubConfig loading logic.

Provides ``_HubConfigLoader``, a mixin whose methods are inherited by
``HubConfig`` (defined in ``settings.py``).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional, cast

if TYPE_CHECKING:
    from archhub.config.settings import HubConfig

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # Python < 3.11 fallback

from archhub.config.parsing import (
    _normalize_log_level,
    _parse_optional_depth,
    _parse_positive_float,
    _parse_positive_int,
)

logger = logging.getLogger(__name__)

CONFIG_FILE_ENV_VAR = "ARCHHUB_CONFIG_FILE"
STORE_ROOT_ENV_VAR = "ARCHHUB_STORE_ROOT"
LOCK_MINUTES_ENV_VAR = "ARCHHUB_LOCK_MINUTES"
LOG_LEVEL_ENV_VAR = "ARCHHUB_LOG_LEVEL"

PROJECT_CONFIG_NAME = "archhub.toml"


class _HubConfigLoader:
    """Mixin providing config-loading methods for ``HubConfig``.

    At runtime ``self`` is always a ``HubConfig`` instance.
    """

    store_root: Path
    lock_timeout: float
    default_lock_minutes: int
    log_level: str
    diff_max_depth: Optional[int]

    @classmethod
    def from_env(cls, config_file: Optional[str] = None) -> "HubConfig":
        """
        Create configuration from environment variables and optional TOML file.

        Priority (highest to lowest):
        1. Environment variables
        2. Project TOML config (./archhub.toml)
        3. XDG config (~/.config/archhub/config.toml)
        4. Default values

        An explicit ``config_file`` (or ``ARCHHUB_CONFIG_FILE``) replaces
        the file layers.
        """
        config = cls()

        toml_path = config_file or os.environ.get(CONFIG_FILE_ENV_VAR)
        if toml_path:
            config._load_toml(Path(toml_path))
        else:
            xdg_config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
            xdg_config = Path(xdg_config_home) / "archhub" / "config.toml"
            if xdg_config.exists():
                config._load_toml(xdg_config)
                logger.debug("Loaded XDG config from %s", xdg_config)

            project_config = Path(PROJECT_CONFIG_NAME)
            if project_config.exists():
                config._load_toml(project_config)
                logger.debug("Loaded project config from %s", project_config)

        config._load_env()
        return cast("HubConfig", config)

    def _load_toml(self, path: Path) -> None:
        """Load configuration from TOML file."""
        if not path.exists():
            logger.warning("Config file not found: %s", path)
            return

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.error("Error loading config file %s: %s", path, e)
            return

        # Storage settings
        if isinstance(data.get("storage"), dict):
            storage = data["storage"]
            if "root" in storage:
                self.store_root = Path(str(storage["root"]))
            if "lock_timeout" in storage:
                self.lock_timeout = _parse_positive_float(
                    storage["lock_timeout"],
                    self.lock_timeout,
                    source=f"{path}: [storage].lock_timeout",
                )

        # Project lock settings
        if isinstance(data.get("locking"), dict):
            locking = data["locking"]
            if "default_duration_minutes" in locking:
                self.default_lock_minutes = _parse_positive_int(
                    locking["default_duration_minutes"],
                    self.default_lock_minutes,
                    source=f"{path}: [locking].default_duration_minutes",
                )

        # Logging settings
        if isinstance(data.get("logging"), dict):
            log = data["logging"]
            if "level" in log:
                self.log_level = _normalize_log_level(log["level"], self.log_level)

        # Diff settings
        if isinstance(data.get("diff"), dict):
            diff = data["diff"]
            if "max_depth" in diff:
                self.diff_max_depth = _parse_optional_depth(
                    diff["max_depth"],
                    self.diff_max_depth,
                    source=f"{path}: [diff].max_depth",
                )

    def _load_env(self) -> None:
        """Load configuration from environment variables."""
        if root := os.environ.get(STORE_ROOT_ENV_VAR):
            self.store_root = Path(root)

        if minutes := os.environ.get(LOCK_MINUTES_ENV_VAR):
            self.default_lock_minutes = _parse_positive_int(
                minutes, self.default_lock_minutes, source=LOCK_MINUTES_ENV_VAR
            )

        if level := os.environ.get(LOG_LEVEL_ENV_VAR):
            self.log_level = _normalize_log_level(level, self.log_level)
