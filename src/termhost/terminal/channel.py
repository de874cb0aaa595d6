"""Bounded line channel between a reader thread and ``read_output`` callers."""

from __future__ import annotations

import threading
import time
from collections import deque


class LineChannel:
    """Thread-safe bounded FIFO of output lines from one process stream.

    A background reader thread pushes decoded lines with ``append()`` and
    calls ``close()`` at end-of-stream.  Consumers take everything queued
    so far with ``drain()``.

    When the channel is full the oldest line is dropped (``dropped`` counts
    them) so a chatty process can never block its reader thread.

    Two channels of the same process may share one ``data_ready`` event,
    letting a consumer wait on stdout and stderr at once.
    """

    def __init__(
        self,
        max_lines: int = 10_000,
        data_ready: threading.Event | None = None,
        tail_lines: int = 50,
    ) -> None:
        self._lines: deque[str] = deque(maxlen=max_lines)
        self._recent: deque[str] = deque(maxlen=tail_lines)
        self._total_lines: int = 0
        self._dropped: int = 0
        self._closed: bool = False
        self._lock = threading.Lock()
        self.data_ready = data_ready or threading.Event()

    def append(self, line: str) -> None:
        """Queue one line and wake any waiter."""
        with self._lock:
            if self._closed:
                return
            if len(self._lines) == self._lines.maxlen:
                self._dropped += 1
            self._lines.append(line)
            self._recent.append(line)
            self._total_lines += 1
        self.data_ready.set()

    def close(self) -> None:
        """Mark end-of-stream.  Lines already queued stay drainable."""
        with self._lock:
            self._closed = True
        self.data_ready.set()

    def drain(self) -> list[str]:
        """Remove and return every queued line, oldest first."""
        with self._lock:
            lines = list(self._lines)
            self._lines.clear()
        return lines

    def read_tail(self, n: int = 10) -> list[str]:
        """Last N lines ever appended, whether drained or not."""
        with self._lock:
            lines = list(self._recent)
        return lines[-n:] if len(lines) > n else lines

    def wait_for_data(self, timeout: float | None = None) -> bool:
        """Block until lines are queued, the channel closes, or timeout.

        Returns True if the channel has something to report.
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self.data_ready.clear()
            if self.pending or self.closed:
                return True
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return False
            self.data_ready.wait(remaining)

    @property
    def pending(self) -> int:
        """Number of lines queued and not yet drained."""
        with self._lock:
            return len(self._lines)

    @property
    def exhausted(self) -> bool:
        """True once the stream has ended and every line was drained."""
        with self._lock:
            return self._closed and not self._lines

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def total_lines(self) -> int:
        """Total number of lines ever appended."""
        with self._lock:
            return self._total_lines

    @property
    def dropped(self) -> int:
        """Lines discarded because the channel was full."""
        with self._lock:
            return self._dropped
