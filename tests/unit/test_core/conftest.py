"""Shared fixtures for core unit tests."""

from datetime import datetime, timezone

import pytest

from archhub.core.store import FileProjectStore


@pytest.fixture
def base_spec():
    """Return a small, structurally sound spec."""
    return {
        "requirements": [
            {"id": "req-1", "description": "Customers can place orders"},
        ],
        "entities": [
            {
                "id": "ent-user",
                "name": "User",
                "fields": [
                    {"name": "id", "type": "String"},
                    {"name": "email", "type": "String"},
                ],
                "relations": [],
            },
            {
                "id": "ent-order",
                "name": "Order",
                "fields": [
                    {"name": "id", "type": "String"},
                    {"name": "total", "type": "Float"},
                ],
                "relations": [{"target": "User", "type": "many-to-one"}],
            },
        ],
        "endpoints": [
            {"id": "ep-list-users", "method": "GET", "path": "/users", "schema": {}},
            {"id": "ep-get-user", "method": "GET", "path": "/users/:id", "schema": {}},
        ],
        "folder_structure": {"src": {"index.ts": None}},
        "systemOverview": "An online shop",
    }


@pytest.fixture
def fixed_now():
    return datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    """A file store rooted in a fresh temporary directory."""
    return FileProjectStore(tmp_path / "store", lock_timeout=1)

