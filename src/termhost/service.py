"""Terminal service — the boundary surface for host applications.

Every method answers with a plain value or a pydantic record and never
raises: typed terminal errors become ``success=False`` with their message,
anything unexpected is logged with its traceback and reported the same way.
"""

from __future__ import annotations

import logging
import os
import platform

from termhost import __version__
from termhost.config import TermhostConfig
from termhost.events import Wire
from termhost.terminal.errors import TerminalError
from termhost.terminal.executor import CommandExecutor
from termhost.terminal.models import (
    ActionResult,
    CleanupResult,
    CommandResult,
    HistoryResult,
    OutputResult,
    SessionInfoResult,
    SessionSummary,
    ShellStartResult,
    TerminalInfo,
)
from termhost.terminal.registry import SessionRegistry

logger = logging.getLogger(__name__)

FEATURES = [
    "Command execution",
    "Root commands",
    "Environment variables",
    "Working directory management",
    "Command history",
    "Multiple sessions",
    "Process management",
    "Interactive shells",
    "Idle session reaping",
]


def _failure_message(operation: str, error: Exception) -> str:
    if isinstance(error, TerminalError):
        logger.debug("%s failed: %s", operation, error.message)
        return error.message
    logger.error("%s failed: %s", operation, error, exc_info=True)
    return f"{operation} failed: {error}"


class TerminalService:
    """Host-facing facade over the registry and the one-shot executor."""

    def __init__(
        self,
        config: TermhostConfig | None = None,
        registry: SessionRegistry | None = None,
        executor: CommandExecutor | None = None,
        wire: Wire | None = None,
    ) -> None:
        self.config = config or TermhostConfig()
        self.registry = registry or SessionRegistry(self.config, wire=wire)
        self.executor = executor or CommandExecutor(self.config)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def create_session(self, working_dir: str) -> str:
        return self.registry.create_session(working_dir)

    def close_session(self, session_id: str) -> bool:
        try:
            return self.registry.close_session(session_id)
        except Exception as e:
            _failure_message("close_session", e)
            return False

    def list_sessions(self) -> list[SessionSummary]:
        return self.registry.list_sessions()

    def get_session_info(self, session_id: str) -> SessionInfoResult:
        try:
            summary = self.registry.get_session_info(session_id)
        except Exception as e:
            return SessionInfoResult(
                success=False, message=_failure_message("get_session_info", e)
            )
        return SessionInfoResult(success=True, session=summary)

    def cleanup_inactive_sessions(self, max_idle_seconds: float) -> CleanupResult:
        removed, remaining = self.registry.cleanup_inactive(max_idle_seconds)
        return CleanupResult(success=True, removed=removed, remaining=remaining)

    def shutdown(self) -> None:
        self.registry.shutdown()

    # ------------------------------------------------------------------
    # One-shot commands
    # ------------------------------------------------------------------

    def execute_command(self, command: str, working_dir: str) -> CommandResult:
        try:
            return self.executor.execute(command, working_dir)
        except Exception as e:
            return CommandResult(
                success=False,
                stderr=[_failure_message("execute_command", e)],
                exit_code=-1,
                command=command,
                working_directory=working_dir,
            )

    def execute_root_command(self, command: str) -> CommandResult:
        try:
            return self.executor.execute(command, "/", as_root=True)
        except Exception as e:
            return CommandResult(
                success=False,
                stderr=[_failure_message("execute_root_command", e)],
                exit_code=-1,
                command=command,
                working_directory="/",
            )

    def is_root_available(self) -> bool:
        try:
            return self.executor.is_root_available()
        except Exception as e:
            _failure_message("is_root_available", e)
            return False

    # ------------------------------------------------------------------
    # Directory and environment
    # ------------------------------------------------------------------

    def get_working_directory(self, session_id: str) -> str:
        return self.registry.get_working_directory(session_id)

    def change_directory(self, session_id: str, target: str) -> bool:
        try:
            return self.registry.change_directory(session_id, target)
        except Exception as e:
            _failure_message("change_directory", e)
            return False

    def set_env_var(self, name: str, value: str) -> ActionResult:
        try:
            count = self.registry.set_env_var(name, value)
        except Exception as e:
            return ActionResult(success=False, message=_failure_message("set_env_var", e))
        return ActionResult(success=True, message=f"Updated {count} session(s)")

    def get_environment_variables(self) -> dict[str, str]:
        return dict(os.environ)

    # ------------------------------------------------------------------
    # Interactive shell
    # ------------------------------------------------------------------

    def start_interactive_shell(self, session_id: str) -> ShellStartResult:
        try:
            shell_path = self.registry.start_interactive_shell(session_id)
        except Exception as e:
            return ShellStartResult(
                success=False, message=_failure_message("start_interactive_shell", e)
            )
        return ShellStartResult(
            success=True, message="Interactive shell started", shell_path=shell_path
        )

    def send_input(self, session_id: str, line: str) -> ActionResult:
        try:
            self.registry.send_input(session_id, line)
        except Exception as e:
            return ActionResult(success=False, message=_failure_message("send_input", e))
        return ActionResult(success=True, message="Input sent to shell")

    def read_output(self, session_id: str, timeout_ms: int) -> OutputResult:
        try:
            stdout, stderr = self.registry.read_output(session_id, timeout_ms / 1000)
        except Exception as e:
            return OutputResult(success=False, message=_failure_message("read_output", e))
        return OutputResult(success=True, stdout=stdout, stderr=stderr)

    def is_shell_running(self, session_id: str) -> bool:
        return self.registry.is_shell_running(session_id)

    def stop_command(self, session_id: str) -> bool:
        try:
            return self.registry.stop_command(session_id)
        except Exception as e:
            _failure_message("stop_command", e)
            return False

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def get_command_history(self, session_id: str) -> HistoryResult:
        try:
            history = self.registry.get_history(session_id)
        except Exception as e:
            return HistoryResult(
                success=False, message=_failure_message("get_command_history", e)
            )
        return HistoryResult(success=True, history=history)

    def save_command_history(self, session_id: str, file_path: str) -> ActionResult:
        try:
            self.registry.save_history(session_id, file_path)
        except Exception as e:
            return ActionResult(
                success=False, message=_failure_message("save_command_history", e)
            )
        return ActionResult(success=True, message=f"History saved to {file_path}")

    def load_command_history(self, session_id: str, file_path: str) -> ActionResult:
        try:
            self.registry.load_history(session_id, file_path)
        except Exception as e:
            return ActionResult(
                success=False, message=_failure_message("load_command_history", e)
            )
        return ActionResult(success=True, message=f"History loaded from {file_path}")

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    def complete(self, session_id: str, partial: str) -> list[str]:
        try:
            return self.registry.complete(session_id, partial)
        except Exception as e:
            _failure_message("complete", e)
            return []

    def get_terminal_info(self) -> TerminalInfo:
        return TerminalInfo(
            version=__version__,
            features=list(FEATURES),
            os_info=platform.platform(),
            root_available=self.is_root_available(),
            shell_path=self.registry.launcher.shell_path(),
            environment=dict(os.environ),
        )
