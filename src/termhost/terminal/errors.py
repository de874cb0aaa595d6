"""Typed failures raised inside the terminal core.

The service facade catches these at its boundary and turns them into
``success=False`` records, so callers across a process boundary never
see a raised exception.
"""

from __future__ import annotations


class TerminalError(Exception):
    """Base class for all terminal core failures.

    Attributes:
        message: Human-readable error message.
        code: Stable machine-readable code (e.g. ``"SESSION_NOT_FOUND"``).
    """

    code: str = "TERMINAL_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class SessionNotFound(TerminalError):
    code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__("Session not found")


class ProcessAlreadyRunning(TerminalError):
    code = "PROCESS_ALREADY_RUNNING"

    def __init__(self) -> None:
        super().__init__("A process is already running in this session")


class ProcessSpawnFailed(TerminalError):
    """Spawning the child failed; ``os_error`` carries the OS error text."""

    code = "PROCESS_SPAWN_FAILED"

    def __init__(self, message: str, os_error: str = "") -> None:
        self.os_error = os_error
        super().__init__(message)


class StdinUnavailable(TerminalError):
    code = "STDIN_UNAVAILABLE"

    def __init__(self) -> None:
        super().__init__("Shell stdin not available")


class NoProcessRunning(TerminalError):
    code = "NO_PROCESS_RUNNING"

    def __init__(self, message: str = "No interactive shell running in this session") -> None:
        super().__init__(message)


class DirectoryNotFound(TerminalError):
    code = "DIRECTORY_NOT_FOUND"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"{path}: No such file or directory")


class NotADirectory(DirectoryNotFound):
    code = "NOT_A_DIRECTORY"

    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.message = f"{path}: Not a directory"
        self.args = (self.message,)


class WriteFailed(TerminalError):
    code = "WRITE_FAILED"


class WaitFailed(TerminalError):
    code = "WAIT_FAILED"


class HistoryIoFailed(TerminalError):
    code = "HISTORY_IO_FAILED"
