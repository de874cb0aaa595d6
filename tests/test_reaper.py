"""Tests for termhost.terminal.reaper.select_idle."""

from __future__ import annotations

import time
from pathlib import Path

from termhost.terminal.reaper import select_idle
from termhost.terminal.session import TerminalSession


def _session() -> TerminalSession:
    return TerminalSession(working_directory=Path("/"))


class TestSelectIdle:
    def test_zero_threshold_selects_all(self) -> None:
        sessions = [_session(), _session()]
        assert select_idle(sessions, 0) == [s.id for s in sessions]

    def test_large_threshold_selects_none(self) -> None:
        assert select_idle([_session()], 3600) == []

    def test_uses_now(self) -> None:
        old, fresh = _session(), _session()
        now = fresh.activity_stamp
        old._activity_mono = now - 120
        assert select_idle([old, fresh], 60, now=now) == [old.id]

    def test_boundary_is_inclusive(self) -> None:
        s = _session()
        assert select_idle([s], 10, now=s.activity_stamp + 10) == [s.id]

    def test_touch_resets_idleness(self) -> None:
        s = _session()
        s._activity_mono = time.monotonic() - 100
        s.touch()
        assert select_idle([s], 50) == []

    def test_empty(self) -> None:
        assert select_idle([], 0) == []
