"""Session registry — the authoritative map from session id to session."""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from termhost.config import TermhostConfig
from termhost.terminal.errors import (
    DirectoryNotFound,
    HistoryIoFailed,
    NoProcessRunning,
    NotADirectory,
    ProcessAlreadyRunning,
    SessionNotFound,
    WaitFailed,
)
from termhost.terminal.launcher import ProcessLauncher
from termhost.terminal.reaper import select_idle
from termhost.terminal.session import ShellProcess, TerminalSession
from termhost.terminal.text import complete_command

if TYPE_CHECKING:
    from termhost.events import Wire
    from termhost.terminal.models import SessionSummary

logger = logging.getLogger(__name__)


def resolve_directory(target: str, cwd: Path, home: str | None) -> Path:
    """Resolve a ``cd`` target for a session.

    Absolute paths are used as-is; ``~`` / ``$HOME`` (optionally followed
    by ``/rest``) resolve under ``home``, or ``/`` when it is unset;
    anything else is relative to ``cwd``.
    """
    base = Path(home) if home else Path("/")
    if target.startswith("/"):
        path = Path(target)
    elif target in ("~", "$HOME"):
        path = base
    elif target.startswith("~/"):
        path = base / target[2:]
    elif target.startswith("$HOME/"):
        path = base / target[6:]
    else:
        path = cwd / target
    return Path(os.path.normpath(path))


def parse_history(content: str) -> list[str]:
    """Split a history file into entries, one per line."""
    return [line.rstrip("\r") for line in content.splitlines()]


class SessionRegistry:
    """Owns every terminal session and its shell process.

    The registry lock guards only the id -> session map.  Each session
    carries its own lock for state changes, and output is read from the
    process channels without holding either, so a slow read on one session
    never stalls another.

    Most operations raise ``TerminalError`` subclasses; ``TerminalService``
    turns those into structured results for external callers.
    """

    def __init__(
        self,
        config: TermhostConfig | None = None,
        launcher: ProcessLauncher | None = None,
        wire: Wire | None = None,
    ) -> None:
        self._config = config or TermhostConfig()
        self._launcher = launcher or ProcessLauncher(self._config)
        self._wire = wire
        self._sessions: dict[str, TerminalSession] = {}
        self._lock = threading.Lock()

    @property
    def launcher(self) -> ProcessLauncher:
        return self._launcher

    @contextmanager
    def _session(self, session_id: str) -> Iterator[TerminalSession]:
        """Look up a session and hold its lock for the duration."""
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFound(session_id)
        with session.lock:
            if session.closed:
                raise SessionNotFound(session_id)
            yield session

    def _snapshot(self) -> list[TerminalSession]:
        with self._lock:
            return list(self._sessions.values())

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_session(self, initial_working_dir: str) -> str:
        """Create a session and return its id.  Always succeeds."""
        environment = dict(os.environ)
        environment.update(self._config.session.environment)
        environment["HOME"] = initial_working_dir

        session = TerminalSession(
            working_directory=Path(initial_working_dir),
            environment=environment,
        )
        with self._lock:
            self._sessions[session.id] = session

        logger.info("Session %s created in %s", session.id, initial_working_dir)
        if self._wire:
            self._wire.send_session_created(session.id, initial_working_dir)
        return session.id

    def close_session(self, session_id: str) -> bool:
        """Kill any owned process and forget the session.

        Returns whether the session existed.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        self._dispose(session)
        logger.info("Session %s closed", session_id)
        if self._wire:
            self._wire.send_session_closed(session_id)
        return True

    def _dispose(self, session: TerminalSession) -> None:
        with session.lock:
            session.closed = True
            process = session.take_process()
        if process is None:
            return
        try:
            process.kill()
        except WaitFailed as e:
            logger.warning("Session %s: %s", session.id, e.message)

    def cleanup_inactive(self, max_idle_seconds: float) -> tuple[list[str], int]:
        """Evict sessions idle for at least ``max_idle_seconds``.

        Returns the removed ids and how many sessions remain.
        """
        with self._lock:
            idle_ids = select_idle(self._sessions.values(), max_idle_seconds)
            removed = [self._sessions.pop(sid) for sid in idle_ids]
            remaining = len(self._sessions)

        for session in removed:
            self._dispose(session)
            if self._wire:
                self._wire.send_session_closed(session.id, reaped=True)
        if removed:
            logger.info(
                "Reaped %d idle session(s) (max idle %ss), %d remaining",
                len(removed),
                max_idle_seconds,
                remaining,
            )
        return [s.id for s in removed], remaining

    def shutdown(self) -> None:
        """Close every session. Called on exit."""
        for session in self._snapshot():
            self.close_session(session.id)
        logger.info("All terminal sessions cleaned up")

    # ------------------------------------------------------------------
    # Working directory and environment
    # ------------------------------------------------------------------

    def get_working_directory(self, session_id: str) -> str:
        """Return the session's cwd, or the default root for unknown ids."""
        try:
            with self._session(session_id) as session:
                return str(session.working_directory)
        except SessionNotFound:
            return self._config.session.default_root

    def change_directory(self, session_id: str, target: str) -> bool:
        """Move the session to ``target`` if it resolves to a directory."""
        try:
            with self._session(session_id) as session:
                session.working_directory = self._enter(session, target)
                session.touch()
                return True
        except (SessionNotFound, DirectoryNotFound) as e:
            logger.debug("cd %s in %s: %s", target, session_id, e.message)
            return False

    @staticmethod
    def _enter(session: TerminalSession, target: str) -> Path:
        new_dir = resolve_directory(
            target, session.working_directory, session.environment.get("HOME")
        )
        if not new_dir.exists():
            raise DirectoryNotFound(str(new_dir))
        if not new_dir.is_dir():
            raise NotADirectory(str(new_dir))
        return new_dir

    def get_environment(self, session_id: str) -> dict[str, str]:
        """Copy of the session's environment."""
        with self._session(session_id) as session:
            return dict(session.environment)

    def set_env_var(self, name: str, value: str) -> int:
        """Set a variable process-wide and in every existing session.

        This is a deliberate broadcast: the ambient environment changes for
        everything in this process, and each session's private copy gets
        the same value.  Returns the number of sessions updated.
        """
        os.environ[name] = value
        sessions = self._snapshot()
        for session in sessions:
            with session.lock:
                session.environment[name] = value
        logger.debug("Set %s for %d session(s)", name, len(sessions))
        if self._wire:
            self._wire.send_env_changed(name, value, len(sessions))
        return len(sessions)

    # ------------------------------------------------------------------
    # Interactive shell
    # ------------------------------------------------------------------

    def start_interactive_shell(self, session_id: str) -> str:
        """Spawn the session's shell and return the shell path used.

        Rejected with ``ProcessAlreadyRunning`` while a live shell is owned.
        A shell that already exited on its own is released and replaced.
        """
        with self._session(session_id) as session:
            current = session.process
            if current is not None:
                if current.alive:
                    raise ProcessAlreadyRunning()
                session.take_process()
                current.kill()

            process, shell_path = self._launcher.spawn_shell(
                session, on_exit=self._exit_notifier(session_id)
            )
            session.process = process
            session.touch()

        if self._wire:
            self._wire.send_shell_started(session_id, shell_path, process.pid)
        return shell_path

    def _exit_notifier(
        self, session_id: str
    ) -> Callable[[ShellProcess, int | None], None] | None:
        if self._wire is None:
            return None
        wire = self._wire

        def _on_exit(process: ShellProcess, exit_code: int | None) -> None:
            wire.send_shell_exit(session_id, exit_code, "\n".join(process.tail(3)))

        return _on_exit

    def send_input(self, session_id: str, line: str) -> None:
        """Write one line to the shell and record it in history."""
        with self._session(session_id) as session:
            process = session.process
            if process is None:
                raise NoProcessRunning()
            if not process.alive:
                raise NoProcessRunning("Interactive shell has exited")
            process.write_line(line)
            session.history.append(line)
            session.touch()

    def read_output(self, session_id: str, timeout: float) -> tuple[list[str], list[str]]:
        """Collect shell output for up to ``timeout`` seconds.

        Output still buffered from a shell that has since exited is
        returned too.  No lock is held while waiting.
        """
        with self._session(session_id) as session:
            process = session.process
            if process is None:
                raise NoProcessRunning()

        stdout, stderr = process.read(timeout)

        # The session may have been closed while we waited.
        with self._lock:
            session = self._sessions.get(session_id)
        if session is not None:
            with session.lock:
                session.touch()
        return stdout, stderr

    def is_shell_running(self, session_id: str) -> bool:
        """Non-blocking check that the session's shell is alive."""
        try:
            with self._session(session_id) as session:
                return session.process is not None and session.process.alive
        except SessionNotFound:
            return False

    def stop_command(self, session_id: str) -> bool:
        """Stop the session's process, if it owns one.

        Hard-kills unless ``session.stop_grace_period`` is configured, in
        which case SIGTERM comes first.  The session lets go of the process
        even when ``WaitFailed`` is raised.
        """
        try:
            with self._session(session_id) as session:
                process = session.take_process()
                if process is None:
                    return False
                session.touch()
        except SessionNotFound:
            return False

        process.terminate(self._config.session.stop_grace_period)
        logger.info("Stopped process in session %s", session_id)
        if self._wire:
            self._wire.send_shell_killed(session_id)
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_history(self, session_id: str) -> list[str]:
        with self._session(session_id) as session:
            return list(session.history)

    def save_history(self, session_id: str, file_path: str) -> None:
        """Write the history to ``file_path``, one entry per line."""
        with self._session(session_id) as session:
            content = "\n".join(session.history)
        try:
            Path(file_path).write_text(content, encoding="utf-8")
        except OSError as e:
            raise HistoryIoFailed(f"Failed to save history: {e}") from e

    def load_history(self, session_id: str, file_path: str) -> None:
        """Replace the in-memory history with the lines of ``file_path``."""
        try:
            content = Path(file_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise HistoryIoFailed(f"Failed to load history: {e}") from e
        with self._session(session_id) as session:
            session.history = parse_history(content)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_session_info(self, session_id: str) -> SessionSummary:
        with self._session(session_id) as session:
            return session.summary()

    def list_sessions(self) -> list[SessionSummary]:
        summaries = []
        for session in self._snapshot():
            with session.lock:
                if not session.closed:
                    summaries.append(session.summary())
        return summaries

    def complete(self, session_id: str, partial: str) -> list[str]:
        """Completions for ``partial`` relative to the session's cwd."""
        with self._session(session_id) as session:
            cwd = str(session.working_directory)
        return complete_command(partial, cwd)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions
