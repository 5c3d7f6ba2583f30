"""Tests for the jab command line."""

import json

import pytest
from click.testing import CliRunner
from dotenv import dotenv_values

from jab import cli
from jab.config import JabConfig


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, jab_dir):
    def _invoke(*args, **kwargs):
        return runner.invoke(cli.main, ["--jab-dir", str(jab_dir), *args], **kwargs)
    return _invoke


@pytest.fixture
def fake_db(monkeypatch):
    """Stand-in database: save dumps whatever 'state' holds, restore records its input."""
    db = {"state": b"v1", "restored": []}
    monkeypatch.setattr(cli, "dump_database", lambda uri: db["state"])
    monkeypatch.setattr(cli, "restore_database", lambda uri, dump: db["restored"].append((uri, dump)))
    return db


def test_init_seeds_empty_registry(runner, tmp_path):
    target = tmp_path / "fresh"
    result = runner.invoke(cli.main, ["--jab-dir", str(target), "init"])

    assert result.exit_code == 0
    assert json.loads((target / "config").read_text()) == {"projects": {}}

    again = runner.invoke(cli.main, ["--jab-dir", str(target), "init"])
    assert "already exists" in again.output


def test_commands_require_init(runner, tmp_path):
    result = runner.invoke(cli.main, ["--jab-dir", str(tmp_path / "none"), "project", "list"])
    assert result.exit_code == 1
    assert "jab init" in result.output


def test_project_create_and_list(invoke, jab_dir):
    result = invoke("project", "create", "shop", "--db-uri", "postgres://localhost/shop")
    assert result.exit_code == 0, result.output
    assert JabConfig.read(jab_dir).project_config("shop").db_uri == "postgres://localhost/shop"
    assert (jab_dir / "projects" / "shop" / ".git").is_dir()

    listed = invoke("project", "list")
    assert "shop" in listed.output


def test_project_remove(invoke, jab_dir):
    invoke("project", "create", "shop", "--db-uri", "postgres://localhost/shop")
    result = invoke("project", "remove", "shop")

    assert result.exit_code == 0
    assert JabConfig.read(jab_dir).projects == {}
    assert (jab_dir / "projects" / "shop").is_dir()


def test_save_show_log_restore(invoke, fake_db):
    invoke("project", "create", "shop", "--db-uri", "postgres://localhost/shop")

    first = invoke("save", "shop", "-m", "init")
    assert first.exit_code == 0, first.output
    first_id = first.output.strip()

    fake_db["state"] = b"v2"
    assert invoke("save", "shop", "-m", "update").exit_code == 0

    assert invoke("show", "shop").stdout_bytes == b"v2"
    assert invoke("show", "shop", "--revision", first_id).stdout_bytes == b"v1"

    log = invoke("log", "shop")
    assert log.output.index("update") < log.output.index("init")

    restored = invoke("restore", "shop", "--revision", first_id, "-y")
    assert restored.exit_code == 0, restored.output
    assert fake_db["restored"] == [("postgres://localhost/shop", b"v1")]


def test_restore_can_be_cancelled(invoke, fake_db):
    invoke("project", "create", "shop", "--db-uri", "postgres://localhost/shop")
    invoke("save", "shop")

    result = invoke("restore", "shop", input="n\n")

    assert "Cancelled" in result.output
    assert fake_db["restored"] == []


def test_unknown_project_fails_cleanly(invoke):
    result = invoke("save", "ghost")
    assert result.exit_code == 1
    assert "ghost" in result.output


def test_show_before_any_save_fails(invoke):
    invoke("project", "create", "shop", "--db-uri", "postgres://localhost/shop")
    result = invoke("show", "shop")
    assert result.exit_code == 1
    assert "No revisions" in result.output


def test_history_records_events(invoke, fake_db):
    invoke("project", "create", "shop", "--db-uri", "postgres://localhost/shop")
    invoke("save", "shop", "-m", "init")

    result = invoke("history", "--project", "shop")

    assert "create" in result.output
    assert "save" in result.output


def test_auth_writes_credentials(invoke, jab_dir, monkeypatch):
    monkeypatch.setenv("PGPASSWORD", "")
    monkeypatch.delenv("PGPASSWORD")
    result = invoke("auth", "PGPASSWORD", "s3cret")

    assert result.exit_code == 0
    assert dotenv_values(jab_dir / "credentials") == {"PGPASSWORD": "s3cret"}


@pytest.mark.parametrize("name", ["../escape", "a/b", "..", ".", "a\\b"])
def test_project_create_rejects_path_names(invoke, jab_dir, tmp_path, name):
    result = invoke("project", "create", name, "--db-uri", "postgres://localhost/shop")

    assert result.exit_code == 2
    assert "plain name" in result.output
    assert JabConfig.read(jab_dir).projects == {}
    assert not (tmp_path / "escape").exists()


def test_corrupt_registry_fails_cleanly(invoke, jab_dir):
    JabConfig.get_path(jab_dir).write_bytes(b'{"projects": {"\xff": 1}}')

    result = invoke("project", "list")

    assert result.exit_code == 1
    assert not isinstance(result.exception, UnicodeDecodeError)
    assert "Invalid jab config" in result.output


def test_history_with_unreadable_log_fails_cleanly(invoke, jab_dir):
    (jab_dir / "logs.jsonl").mkdir()

    result = invoke("history")

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
