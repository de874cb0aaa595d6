"""Tests for termhost.events (Wire, WireEvent, EventType)."""

from __future__ import annotations

import queue
import threading

import pytest

from termhost.events import EventType, Wire, WireEvent


# ---------------------------------------------------------------------------
# EventType
# ---------------------------------------------------------------------------


class TestEventType:
    def test_all_variants_exist(self) -> None:
        expected = {
            "SESSION_CREATED",
            "SESSION_CLOSED",
            "SESSION_REAPED",
            "SHELL_STARTED",
            "SHELL_EXITED",
            "SHELL_KILLED",
            "ENV_CHANGED",
        }
        assert {e.name for e in EventType} == expected

    def test_values_are_lowercase(self) -> None:
        for e in EventType:
            assert e.value == e.name.lower()


# ---------------------------------------------------------------------------
# WireEvent
# ---------------------------------------------------------------------------


class TestWireEvent:
    def test_defaults(self) -> None:
        event = WireEvent(type=EventType.SESSION_CREATED)
        assert event.data == {}


# ---------------------------------------------------------------------------
# Wire — send/subscribe
# ---------------------------------------------------------------------------


class TestWire:
    def test_send_to_subscriber(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_session_created("terminal_1", "/tmp")
        event = q.get_nowait()
        assert event is not None
        assert event.type == EventType.SESSION_CREATED
        assert event.data == {"session_id": "terminal_1", "working_directory": "/tmp"}

    def test_send_to_multiple_subscribers(self) -> None:
        wire = Wire()
        q1 = wire.subscribe()
        q2 = wire.subscribe()
        wire.send_shell_killed("terminal_1")
        e1 = q1.get_nowait()
        e2 = q2.get_nowait()
        assert e1 is not None and e2 is not None
        assert e1.type == e2.type == EventType.SHELL_KILLED

    def test_unsubscribe(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.unsubscribe(q)
        wire.send_shell_killed("terminal_1")
        with pytest.raises(queue.Empty):
            q.get_nowait()

    def test_unsubscribe_unknown_queue_is_noop(self) -> None:
        wire = Wire()
        wire.unsubscribe(queue.Queue())

    def test_closed_reason_for_reaped(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_session_closed("a")
        wire.send_session_closed("b", reaped=True)
        assert q.get_nowait().type == EventType.SESSION_CLOSED
        assert q.get_nowait().type == EventType.SESSION_REAPED

    def test_shell_exit_truncates_output(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.send_shell_exit("a", 3, "x" * 2000)
        event = q.get_nowait()
        assert event.data["exit_code"] == 3
        assert len(event.data["last_output"]) == 500

    def test_close_sends_sentinel_and_drops_later_events(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        wire.close()
        assert q.get_nowait() is None
        wire.send_shell_killed("a")
        with pytest.raises(queue.Empty):
            q.get_nowait()

    def test_send_from_other_thread(self) -> None:
        wire = Wire()
        q = wire.subscribe()
        t = threading.Thread(target=wire.send_env_changed, args=("FOO", "bar", 2))
        t.start()
        t.join()
        event = q.get(timeout=1.0)
        assert event.type == EventType.ENV_CHANGED
        assert event.data == {"name": "FOO", "value": "bar", "sessions": 2}
