"""Tests for termhost.terminal.procs."""

from __future__ import annotations

import os
import subprocess

from termhost.terminal.procs import kill_process, list_processes, parse_ps_output

PS_SAMPLE = [
    "USER       PID  PPID %CPU %MEM    VSZ   RSS COMMAND",
    "root         1     0  0.0  0.1 167760 11520 /sbin/init splash",
    "u0_a123  4242     1  2.5  1.3 991234 65432 com.example.app --flag value",
    "garbage line",
    "root       abc     0  0.0  0.0      0     0 [kthreadd]",
]


class TestParsePsOutput:
    def test_parses_rows(self) -> None:
        procs = parse_ps_output(PS_SAMPLE)
        assert [p.pid for p in procs] == [1, 4242]

    def test_command_keeps_arguments(self) -> None:
        app = parse_ps_output(PS_SAMPLE)[1]
        assert app.user == "u0_a123"
        assert app.ppid == 1
        assert app.cpu == 2.5
        assert app.mem == 1.3
        assert app.vsz == 991234
        assert app.rss == 65432
        assert app.command == "com.example.app --flag value"

    def test_header_only(self) -> None:
        assert parse_ps_output(PS_SAMPLE[:1]) == []


class TestListProcesses:
    def test_includes_self(self) -> None:
        pids = {p.pid for p in list_processes()}
        assert os.getpid() in pids


class TestKillProcess:
    def test_kill_child(self) -> None:
        child = subprocess.Popen(["sleep", "10"])
        try:
            assert kill_process(child.pid) is True
            assert child.wait(timeout=5) != 0
        finally:
            if child.poll() is None:
                child.kill()
                child.wait()

    def test_kill_missing_pid(self) -> None:
        child = subprocess.Popen(["true"])
        child.wait()
        assert kill_process(child.pid) is False
