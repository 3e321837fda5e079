"""Configuration package for archhub.

Sub-modules:
    parsing  – value parsing helpers with warn-and-fallback semantics
    loader   – HubConfig loading mixin (_HubConfigLoader)
    settings – HubConfig dataclass, get_config/set_config globals
"""

from archhub.config.loader import (  # noqa: F401
    CONFIG_FILE_ENV_VAR,
    LOCK_MINUTES_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    STORE_ROOT_ENV_VAR,
)
from archhub.config.settings import HubConfig, get_config, set_config  # noqa: F401

__all__ = [
    "CONFIG_FILE_ENV_VAR",
    "LOCK_MINUTES_ENV_VAR",
    "LOG_LEVEL_ENV_VAR",
    "STORE_ROOT_ENV_VAR",
    "HubConfig",
    "get_config",
    "set_config",
]
