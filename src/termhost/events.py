"""Wire — lifecycle notifications from the terminal core to observers.

The registry publishes session and shell lifecycle events; a host UI or
log sink subscribes and consumes them from its own thread.
"""

from __future__ import annotations

import enum
import queue
import threading
from dataclasses import dataclass, field
from typing import Any


class EventType(enum.Enum):
    SESSION_CREATED = "session_created"
    SESSION_CLOSED = "session_closed"
    SESSION_REAPED = "session_reaped"
    SHELL_STARTED = "shell_started"
    SHELL_EXITED = "shell_exited"
    SHELL_KILLED = "shell_killed"
    ENV_CHANGED = "env_changed"


@dataclass
class WireEvent:
    """An event on the wire."""

    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Wire:
    """Thread-safe broadcast bus: terminal core -> subscribers.

    Events are sent from whichever thread triggered them (caller threads,
    or a process exit watcher), so subscribers get plain ``queue.Queue``
    objects.
    """

    def __init__(self) -> None:
        self._subscribers: list[queue.Queue[WireEvent | None]] = []
        self._lock = threading.Lock()
        self._closed: bool = False

    def send(self, event: WireEvent) -> None:
        """Send an event to all subscribers.

        Silently drops events after ``close()`` has been called.
        """
        with self._lock:
            if self._closed:
                return
            subscribers = list(self._subscribers)
        for q in subscribers:
            q.put_nowait(event)

    def send_session_created(self, session_id: str, working_directory: str) -> None:
        self.send(
            WireEvent(
                type=EventType.SESSION_CREATED,
                data={"session_id": session_id, "working_directory": working_directory},
            )
        )

    def send_session_closed(self, session_id: str, reaped: bool = False) -> None:
        event_type = EventType.SESSION_REAPED if reaped else EventType.SESSION_CLOSED
        self.send(WireEvent(type=event_type, data={"session_id": session_id}))

    def send_shell_started(self, session_id: str, shell_path: str, pid: int) -> None:
        self.send(
            WireEvent(
                type=EventType.SHELL_STARTED,
                data={"session_id": session_id, "shell_path": shell_path, "pid": pid},
            )
        )

    def send_shell_exit(
        self,
        session_id: str,
        exit_code: int | None,
        last_output: str = "",
    ) -> None:
        """Notify subscribers that a shell exited on its own."""
        self.send(
            WireEvent(
                type=EventType.SHELL_EXITED,
                data={
                    "session_id": session_id,
                    "exit_code": exit_code,
                    "last_output": last_output[:500],
                },
            )
        )

    def send_shell_killed(self, session_id: str) -> None:
        self.send(WireEvent(type=EventType.SHELL_KILLED, data={"session_id": session_id}))

    def send_env_changed(self, name: str, value: str, sessions: int) -> None:
        self.send(
            WireEvent(
                type=EventType.ENV_CHANGED,
                data={"name": name, "value": value, "sessions": sessions},
            )
        )

    def subscribe(self) -> queue.Queue[WireEvent | None]:
        """Subscribe to events. Returns a queue to read from."""
        q: queue.Queue[WireEvent | None] = queue.Queue()
        with self._lock:
            self._subscribers.append(q)
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        """Unsubscribe from events."""
        with self._lock:
            if q in self._subscribers:
                self._subscribers.remove(q)

    def close(self) -> None:
        """Signal all subscribers that the wire is closing."""
        with self._lock:
            self._closed = True
            subscribers = list(self._subscribers)
        for q in subscribers:
            q.put_nowait(None)
