"""Tests for the lmsnotes CLI."""

import os
from unittest.mock import patch

import pytest
from conftest import FakeCanvasClient, make_assignment
from typer.testing import CliRunner

from lmsnotes.canvas.client import TransportError
from lmsnotes.cli import app
from lmsnotes.ledger import read_ledger_tail
from lmsnotes.paths import VaultPaths
from lmsnotes.store import SyncStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("LMSNOTES_TIMEZONE", raising=False)
    monkeypatch.delenv("LMSNOTES_VAULT", raising=False)


def _configure(temp_vault, tmp_path):
    rules = tmp_path / "courses.txt"
    rules.write_text("# spring\nid = 42; folder = School/Math; tags = math\n", encoding="utf-8")
    vault = str(temp_vault)
    assert runner.invoke(app, ["config", "set", "access_token", "tok", "--vault", vault]).exit_code == 0
    assert runner.invoke(app, ["config", "set", "canvas_url", "canvas.example.edu", "--vault", vault]).exit_code == 0
    assert runner.invoke(app, ["courses", "set", "--file", str(rules), "--vault", vault]).exit_code == 0


def test_config_set_and_show(temp_vault):
    vault = str(temp_vault)

    result = runner.invoke(app, ["config", "set", "rubric_mode", "table", "--vault", vault])
    assert result.exit_code == 0

    settings, _ = SyncStore(VaultPaths(temp_vault).data_file).load()
    assert settings.rubric_mode == "table"

    result = runner.invoke(app, ["config", "show", "--vault", vault])
    assert result.exit_code == 0
    assert "table" in result.output


def test_config_set_rejects_unknown_field(temp_vault):
    result = runner.invoke(app, ["config", "set", "colour", "red", "--vault", str(temp_vault)])
    assert result.exit_code == 1
    assert "Unknown setting" in result.output


def test_courses_set_rejects_bad_file(temp_vault, tmp_path):
    rules = tmp_path / "courses.txt"
    rules.write_text("id = 1\nfolder = nope\n", encoding="utf-8")

    result = runner.invoke(app, ["courses", "set", "--file", str(rules), "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "numerical id" in result.output
    settings, _ = SyncStore(VaultPaths(temp_vault).data_file).load()
    assert settings.courses == []


def test_sync_creates_notes(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)
    fake = FakeCanvasClient({42: [[make_assignment(1), make_assignment(2)]]})

    with patch("lmsnotes.cli.CanvasClient", return_value=fake):
        result = runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    assert result.exit_code == 0, result.output
    assert "Assignments synced in" in result.output
    assert (temp_vault / "School/Math/Homework 1.md").exists()

    result = runner.invoke(app, ["cache", "show", "--vault", str(temp_vault)])
    assert "2 assignments cached." in result.output


def test_sync_failure_reports_generic_error(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)

    class FailingClient(FakeCanvasClient):
        def fetch_assignment_page(self, course_id, page_index):
            raise TransportError("401", course_id)

    with patch("lmsnotes.cli.CanvasClient", return_value=FailingClient()):
        result = runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "Failed to sync assignments! Check your access token." in result.output


def test_sync_without_token_fails(temp_vault, monkeypatch):
    monkeypatch.delenv("CANVAS_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("CANVAS_URL", raising=False)

    result = runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "access token not found" in result.output


def test_cache_clear(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)
    fake = FakeCanvasClient({42: [[make_assignment(1)]]})
    with patch("lmsnotes.cli.CanvasClient", return_value=fake):
        runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    result = runner.invoke(app, ["cache", "clear", "--vault", str(temp_vault)])

    assert result.exit_code == 0
    settings, cache = SyncStore(VaultPaths(temp_vault).data_file).load()
    assert cache == {}
    assert [c.id for c in settings.courses] == [42]
    assert (temp_vault / "School/Math/Homework 1.md").exists()


def test_refresh_unknown_course(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)
    with patch("lmsnotes.cli.CanvasClient", return_value=FakeCanvasClient()):
        result = runner.invoke(app, ["refresh", "7", "1", "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "not configured" in result.output


def test_ledger_tail_after_sync(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)
    fake = FakeCanvasClient({42: [[make_assignment(1)]]})
    with patch("lmsnotes.cli.CanvasClient", return_value=fake):
        runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    result = runner.invoke(app, ["ledger", "tail", "--full", "--vault", str(temp_vault)])

    assert result.exit_code == 0
    assert "SYNC_COMPLETED" in result.output


def test_courses_set_rejects_folder_outside_vault(temp_vault, tmp_path):
    rules = tmp_path / "courses.txt"
    rules.write_text("id = 42; folder = ../outside\n", encoding="utf-8")

    result = runner.invoke(app, ["courses", "set", "--file", str(rules), "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "inside the vault" in result.output
    settings, _ = SyncStore(VaultPaths(temp_vault).data_file).load()
    assert settings.courses == []


def test_sync_write_failure_reports_generic_error(temp_vault, tmp_path):
    """Test that a failure outside the Canvas client still exits cleanly and is logged."""
    _configure(temp_vault, tmp_path)
    # A directory where the note should go makes the create fail
    (temp_vault / "School/Math/Homework 1.md").mkdir(parents=True)
    fake = FakeCanvasClient({42: [[make_assignment(1)]]})

    with patch("lmsnotes.cli.CanvasClient", return_value=fake):
        result = runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert not isinstance(result.exception, OSError)
    assert "Failed to sync assignments! Check your access token." in result.output
    events = read_ledger_tail(VaultPaths(temp_vault).ledger_file, n=50)
    assert events[-1].event_type == "SYNC_FAILED"
    assert not VaultPaths(temp_vault).lock_file.exists()


def test_refresh_failure_reports_generic_error(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)

    with patch("lmsnotes.cli.CanvasClient", return_value=FakeCanvasClient()):
        result = runner.invoke(app, ["refresh", "42", "99", "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "Failed to refresh assignment! Check your access token." in result.output


def test_sync_while_another_is_running(temp_vault, tmp_path):
    _configure(temp_vault, tmp_path)
    lock_file = VaultPaths(temp_vault).lock_file
    lock_file.write_text(str(os.getpid()), encoding="utf-8")
    fake = FakeCanvasClient({42: [[make_assignment(1)]]})

    with patch("lmsnotes.cli.CanvasClient", return_value=fake):
        result = runner.invoke(app, ["sync", "--vault", str(temp_vault)])

    assert result.exit_code == 1
    assert "already running" in result.output
    assert fake.calls == []
    assert lock_file.exists()
