"""Tests for termhost.terminal.channel.LineChannel."""

from __future__ import annotations

import threading
import time

from termhost.terminal.channel import LineChannel


class TestLineChannelBasics:
    def test_empty(self) -> None:
        ch = LineChannel()
        assert ch.pending == 0
        assert ch.total_lines == 0
        assert ch.drain() == []
        assert not ch.closed
        assert not ch.exhausted

    def test_append_and_drain(self) -> None:
        ch = LineChannel()
        ch.append("hello")
        ch.append("world")
        assert ch.pending == 2
        assert ch.drain() == ["hello", "world"]
        assert ch.pending == 0
        assert ch.total_lines == 2

    def test_drain_removes_lines(self) -> None:
        ch = LineChannel()
        ch.append("a")
        ch.drain()
        ch.append("b")
        assert ch.drain() == ["b"]


class TestLineChannelOverflow:
    def test_maxlen_enforced(self) -> None:
        ch = LineChannel(max_lines=5)
        for i in range(10):
            ch.append(f"line {i}")
        assert ch.pending == 5
        assert ch.total_lines == 10
        assert ch.dropped == 5
        assert ch.drain() == ["line 5", "line 6", "line 7", "line 8", "line 9"]

    def test_no_drops_under_capacity(self) -> None:
        ch = LineChannel(max_lines=3)
        ch.append("a")
        ch.append("b")
        assert ch.dropped == 0


class TestLineChannelClose:
    def test_close_keeps_queued_lines(self) -> None:
        ch = LineChannel()
        ch.append("last words")
        ch.close()
        assert ch.closed
        assert not ch.exhausted
        assert ch.drain() == ["last words"]
        assert ch.exhausted

    def test_append_after_close_ignored(self) -> None:
        ch = LineChannel()
        ch.close()
        ch.append("late")
        assert ch.drain() == []
        assert ch.total_lines == 0


class TestLineChannelTail:
    def test_tail_survives_drain(self) -> None:
        ch = LineChannel()
        for i in range(5):
            ch.append(f"line {i}")
        ch.drain()
        assert ch.read_tail(2) == ["line 3", "line 4"]

    def test_tail_more_than_available(self) -> None:
        ch = LineChannel()
        ch.append("a")
        assert ch.read_tail(10) == ["a"]


class TestLineChannelWait:
    def test_wait_times_out_when_empty(self) -> None:
        ch = LineChannel()
        start = time.monotonic()
        assert ch.wait_for_data(timeout=0.1) is False
        assert time.monotonic() - start >= 0.09

    def test_wait_returns_immediately_with_data(self) -> None:
        ch = LineChannel()
        ch.append("ready")
        assert ch.wait_for_data(timeout=1.0) is True

    def test_wait_wakes_on_append_from_other_thread(self) -> None:
        ch = LineChannel()
        timer = threading.Timer(0.05, ch.append, args=("from thread",))
        timer.start()
        try:
            assert ch.wait_for_data(timeout=2.0) is True
            assert ch.drain() == ["from thread"]
        finally:
            timer.cancel()

    def test_wait_wakes_on_close(self) -> None:
        ch = LineChannel()
        timer = threading.Timer(0.05, ch.close)
        timer.start()
        try:
            assert ch.wait_for_data(timeout=2.0) is True
            assert ch.exhausted
        finally:
            timer.cancel()

    def test_shared_event(self) -> None:
        ready = threading.Event()
        out = LineChannel(data_ready=ready)
        err = LineChannel(data_ready=ready)
        err.append("oops")
        assert ready.is_set()
        assert out.data_ready is err.data_ready
