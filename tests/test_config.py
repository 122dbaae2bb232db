"""Tests for environment-driven settings."""

import sysconfig
from pathlib import Path

import pytest

from config import MAX_ITERATIONS, PROCESS_COMMANDS, Settings


def test_defaults(monkeypatch):
    for name in ("CODELIT_MAX_ITERATIONS", "CODELIT_MODEL", "CODELIT_HISTORY_PATH", "CODELIT_CMD_STOP_WEBSITE"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings.from_env()

    assert settings.max_iterations == MAX_ITERATIONS == 20
    assert settings.max_consecutive_failures == 3
    assert settings.model == "gpt-4o"
    assert settings.history_path is None
    assert settings.allowed_extensions == (".html", ".css", ".js")
    assert settings.process_commands == PROCESS_COMMANDS


def test_from_env_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("CODELIT_PROJECTS_DIR", str(tmp_path / "projects"))
    monkeypatch.setenv("CODELIT_MAX_ITERATIONS", "7")
    monkeypatch.setenv("CODELIT_TEMPERATURE", "0.2")
    monkeypatch.setenv("CODELIT_HISTORY_PATH", str(tmp_path / "h.json"))
    monkeypatch.setenv("CODELIT_LOG_LEVEL", "debug")
    monkeypatch.setenv("CODELIT_CMD_STOP_WEBSITE", "systemctl stop site")
    monkeypatch.delenv("CODELIT_SQLITE_PATH", raising=False)

    settings = Settings.from_env()

    assert settings.projects_dir == tmp_path / "projects"
    assert settings.max_iterations == 7
    assert settings.temperature == pytest.approx(0.2)
    assert settings.history_path == Path(tmp_path / "h.json")
    assert settings.sqlite_path == tmp_path / "db.sqlite"
    assert settings.log_level == "DEBUG"
    assert settings.process_commands["stop_website"] == "systemctl stop site"
    assert settings.process_commands["restart_website"] == PROCESS_COMMANDS["restart_website"]


def test_bad_integer_is_reported(monkeypatch):
    monkeypatch.setenv("CODELIT_MAX_ITERATIONS", "lots")

    with pytest.raises(ValueError, match="CODELIT_MAX_ITERATIONS must be an integer"):
        Settings.from_env()


def test_limits_must_be_positive(monkeypatch):
    monkeypatch.setenv("CODELIT_MAX_CONSECUTIVE_FAILURES", "0")

    with pytest.raises(ValueError, match="must be > 0"):
        Settings.from_env()
    with pytest.raises(ValueError):
        Settings(history_tail=-1).validate_limits()


def test_default_paths_follow_working_directory(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("CODELIT_PROJECTS_DIR", "CODELIT_SQLITE_PATH"):
        monkeypatch.delenv(name, raising=False)

    for settings in (Settings(), Settings.from_env()):
        assert settings.projects_dir == tmp_path / "projects"
        assert settings.sqlite_path == tmp_path / "db.sqlite"
        assert "site-packages" not in settings.projects_dir.parts
        assert not settings.projects_dir.is_relative_to(Path(sysconfig.get_paths()["stdlib"]))
