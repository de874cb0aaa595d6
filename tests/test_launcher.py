"""Tests for termhost.terminal.launcher."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from termhost.terminal.errors import ProcessSpawnFailed
from termhost.terminal.launcher import ProcessLauncher, resolve_shell_path, run_to_completion
from termhost.terminal.session import ProcessStatus, TerminalSession


class TestResolveShellPath:
    def test_shell_env_wins(self) -> None:
        assert resolve_shell_path({"SHELL": "/bin/sh"}, candidates=["/bin/bash"]) == "/bin/sh"

    def test_missing_shell_env_falls_to_candidates(self) -> None:
        path = resolve_shell_path(
            {"SHELL": "/nope/termhost-shell"}, candidates=["/nope/a", "/bin/sh"]
        )
        assert path == "/bin/sh"

    def test_non_executable_shell_env_ignored(self, tmp_path: Path) -> None:
        fake = tmp_path / "shell"
        fake.write_text("")
        fake.chmod(0o644)
        assert resolve_shell_path({"SHELL": str(fake)}, candidates=["/bin/sh"]) == "/bin/sh"

    def test_first_existing_candidate(self) -> None:
        path = resolve_shell_path({}, candidates=["/nope/a", "/bin/sh", "/nope/b"])
        assert path == "/bin/sh"

    def test_fallback(self) -> None:
        path = resolve_shell_path({}, candidates=["/nope/a"], fallback="/nope/fallback")
        assert path == "/nope/fallback"


class TestRunToCompletion:
    def test_captures_lines(self) -> None:
        completed = run_to_completion(["sh", "-c", "echo one; echo two >&2; exit 4"])
        assert completed.stdout == ["one"]
        assert completed.stderr == ["two"]
        assert completed.returncode == 4
        assert completed.timed_out is False

    def test_env_passed(self) -> None:
        completed = run_to_completion(
            ["sh", "-c", 'echo "$TERMHOST_PROBE"'], env={"TERMHOST_PROBE": "yes", "PATH": os.defpath}
        )
        assert completed.stdout == ["yes"]

    def test_missing_binary_raises(self) -> None:
        with pytest.raises(ProcessSpawnFailed) as exc:
            run_to_completion(["termhost-definitely-missing"])
        assert exc.value.os_error

    def test_timeout(self) -> None:
        completed = run_to_completion(["sh", "-c", "echo early; sleep 10"], timeout=0.3)
        assert completed.timed_out is True
        assert completed.stdout == ["early"]


class TestProcessLauncher:
    def test_spawn_shell_uses_session_state(self, config, tmp_path: Path) -> None:
        session = TerminalSession(
            working_directory=tmp_path,
            environment={"PATH": os.defpath, "TERMHOST_PROBE": "session-value"},
        )
        process, shell_path = ProcessLauncher(config).spawn_shell(session)
        try:
            assert shell_path == "/bin/sh"
            assert process.status == ProcessStatus.RUNNING
            process.write_line('echo "$TERMHOST_PROBE"; pwd')
            out, _ = process.read(2.0)
            assert out[:1] == ["session-value"]
            assert os.path.realpath(out[1]) == os.path.realpath(tmp_path)
        finally:
            process.kill()
        assert process.status == ProcessStatus.KILLED

    def test_spawn_in_missing_dir_fails(self, config, tmp_path: Path) -> None:
        session = TerminalSession(working_directory=tmp_path / "missing")
        with pytest.raises(ProcessSpawnFailed) as exc:
            ProcessLauncher(config).spawn_shell(session)
        assert exc.value.message.startswith("Failed to start shell: ")
