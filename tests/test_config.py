"""Tests for termhost.config."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from termhost.config import DEFAULT_SHELL_CANDIDATES, TermhostConfig

_ENV_VARS = (
    "TERMHOST_DEFAULT_ROOT",
    "TERMHOST_FALLBACK_SHELL",
    "TERMHOST_STOP_GRACE_PERIOD",
    "TERMHOST_CHANNEL_MAX_LINES",
    "TERMHOST_COMMAND_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_defaults(self) -> None:
        config = TermhostConfig()
        assert config.shell.candidates == DEFAULT_SHELL_CANDIDATES
        assert config.shell.fallback == "/bin/sh"
        assert config.session.default_root == "/"
        assert config.session.environment["TERM"] == "xterm-256color"
        assert config.session.environment["HISTSIZE"] == "1000"
        assert config.session.stop_grace_period == 0.0
        assert config.execution.command_timeout is None
        assert config.execution.root_command == "su"

    def test_candidates_not_shared(self) -> None:
        a = TermhostConfig()
        a.shell.candidates.append("/x")
        assert TermhostConfig().shell.candidates == DEFAULT_SHELL_CANDIDATES


class TestLoad:
    def test_load_without_file(self) -> None:
        config = TermhostConfig.load(None)
        assert config.session.default_root == "/"

    def test_load_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = TermhostConfig.load(str(tmp_path / "missing.json"))
        assert config.execution.command_timeout is None

    def test_load_from_file(self, tmp_path: Path) -> None:
        path = tmp_path / "termhost.json"
        path.write_text(
            json.dumps(
                {
                    "shell": {"candidates": ["/bin/sh"]},
                    "session": {"default_root": "/data", "stop_grace_period": 1.5},
                    "execution": {"root_command": "sudo"},
                }
            )
        )
        config = TermhostConfig.load(str(path))
        assert config.shell.candidates == ["/bin/sh"]
        assert config.session.default_root == "/data"
        assert config.session.stop_grace_period == 1.5
        assert config.execution.root_command == "sudo"

    def test_env_overrides_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "termhost.json"
        path.write_text(json.dumps({"session": {"default_root": "/data"}}))
        monkeypatch.setenv("TERMHOST_DEFAULT_ROOT", "/sdcard")
        monkeypatch.setenv("TERMHOST_FALLBACK_SHELL", "/bin/dash")
        monkeypatch.setenv("TERMHOST_STOP_GRACE_PERIOD", "0.5")
        monkeypatch.setenv("TERMHOST_CHANNEL_MAX_LINES", "200")
        monkeypatch.setenv("TERMHOST_COMMAND_TIMEOUT", "30")

        config = TermhostConfig.load(str(path))
        assert config.session.default_root == "/sdcard"
        assert config.shell.fallback == "/bin/dash"
        assert config.session.stop_grace_period == 0.5
        assert config.session.channel_max_lines == 200
        assert config.execution.command_timeout == 30.0
