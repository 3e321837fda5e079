"""Per-invocation CLI context shared by command groups."""

from dataclasses import dataclass, field
from typing import Optional

import click

from archhub.config import HubConfig, get_config
from archhub.core.store import FileProjectStore


@dataclass
class CLIContext:
    """Resolved configuration plus a lazily created project store."""

    config: HubConfig
    _store: Optional[FileProjectStore] = field(default=None, repr=False)

    @property
    def store(self) -> FileProjectStore:
        if self._store is None:
            self._store = FileProjectStore(
                self.config.store_root,
                lock_timeout=self.config.lock_timeout,
            )
        return self._store


def get_context(ctx: click.Context) -> CLIContext:
    """Return the invocation's CLIContext, building one from global config if absent."""
    root = ctx.find_root()
    if not isinstance(root.obj, CLIContext):
        root.obj = CLIContext(config=get_config())
    return root.obj
