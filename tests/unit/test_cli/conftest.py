"""Shared fixtures for CLI command tests."""

import json

import pytest
from click.testing import CliRunner

from archhub.cli.main import cli
from archhub.config import set_config

BASE_SPEC = {
    "requirements": [{"id": "req-1", "type": "functional", "description": "Users can place orders"}],
    "entities": [
        {
            "id": "ent-user",
            "name": "User",
            "fields": [{"name": "id", "type": "String"}, {"name": "email", "type": "String"}],
        },
        {
            "id": "ent-order",
            "name": "Order",
            "fields": [{"name": "id", "type": "String"}, {"name": "total", "type": "Float"}],
            "relations": [{"type": "many-to-one", "target": "User"}],
        },
    ],
    "endpoints": [
        {"id": "ep-list-users", "method": "GET", "path": "/users", "description": "List users", "schema": {}},
        {"id": "ep-get-user", "method": "GET", "path": "/users/:id", "description": "Get a user", "schema": {}},
    ],
    "folder_structure": {"src": {"index.ts": None}},
}

ADD_PRODUCT = {
    "summary": "Add products",
    "operations": [
        {
            "type": "addEntity",
            "entity": {"id": "ent-product", "name": "Product", "fields": [{"name": "id", "type": "String"}]},
        }
    ],
}


@pytest.fixture(autouse=True)
def isolated_cli_env(tmp_path, monkeypatch):
    """Keep config lookup, env vars and log output out of the tests' way."""
    for name in ("ARCHHUB_CONFIG_FILE", "ARCHHUB_STORE_ROOT", "ARCHHUB_LOCK_MINUTES", "ARCHHUB_USER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ARCHHUB_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    yield
    set_config(None)


@pytest.fixture
def cli_runner():
    return CliRunner()


@pytest.fixture
def store_dir(tmp_path):
    return tmp_path / "store"


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(BASE_SPEC, indent=2))
    return path


@pytest.fixture
def change_file(tmp_path):
    path = tmp_path / "change.json"
    path.write_text(json.dumps(ADD_PRODUCT, indent=2))
    return path


@pytest.fixture
def run_cli(cli_runner, store_dir):
    """Invoke the CLI against the temporary store; return (exit_code, envelope)."""

    def _run(*args):
        result = cli_runner.invoke(cli, ["--store", str(store_dir), *args])
        return result.exit_code, json.loads(result.stdout)

    return _run


@pytest.fixture
def shop(run_cli, spec_file):
    exit_code, envelope = run_cli("project", "init", "shop", "--name", "Shop", "--spec", str(spec_file))
    assert exit_code == 0, envelope
    return envelope["data"]["project"]
