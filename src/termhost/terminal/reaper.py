"""Pick sessions whose last activity is too old.

Selection is a pure function; the registry does the removal and killing.
No timers live here: how often to reap is the caller's business.
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from termhost.terminal.session import TerminalSession


def select_idle(
    sessions: Iterable[TerminalSession],
    max_idle_seconds: float,
    now: float | None = None,
) -> list[str]:
    """Return ids of sessions idle for at least ``max_idle_seconds``.

    ``now`` is a ``time.monotonic()`` reading; it defaults to the current
    time.  A threshold of 0 selects every session.
    """
    now = time.monotonic() if now is None else now
    return [s.id for s in sessions if now - s.activity_stamp >= max_idle_seconds]
