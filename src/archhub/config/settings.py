"""HubConfig dataclass and the process-wide config accessors."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from archhub.config.loader import _HubConfigLoader
from archhub.core.spec._constants import DEFAULT_LOCK_MINUTES
from archhub.core.store import LOCK_ACQUISITION_TIMEOUT


@dataclass
class HubConfig(_HubConfigLoader):
    """Hub configuration with support for env vars and TOML overrides."""

    # Project store
    store_root: Path = Path(".archhub")
    lock_timeout: float = float(LOCK_ACQUISITION_TIMEOUT)

    # Project locks
    default_lock_minutes: int = DEFAULT_LOCK_MINUTES

    # Logging
    log_level: str = "INFO"

    # Diff depth limit (None = unlimited)
    diff_max_depth: Optional[int] = None


_config: Optional[HubConfig] = None


def get_config() -> HubConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = HubConfig.from_env()
    return _config


def set_config(config: Optional[HubConfig]) -> None:
    """Set (or with None, reset) the global configuration instance."""
    global _config
    _config = config
