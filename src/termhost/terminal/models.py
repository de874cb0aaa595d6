"""Result records returned across the terminal boundary.

Every public operation answers with one of these instead of raising, so a
caller on the far side of a process or language boundary can interpret
failures uniformly (``model_dump_json()`` gives the wire form).
"""

from __future__ import annotations

import time

from pydantic import BaseModel, Field


def now_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class CommandResult(BaseModel):
    """Outcome of a one-shot command."""

    success: bool
    stdout: list[str] = Field(default_factory=list)
    stderr: list[str] = Field(default_factory=list)
    exit_code: int = 0
    duration_ms: int = 0
    command: str = ""
    working_directory: str = ""
    timestamp: int = Field(default_factory=now_millis)


class ActionResult(BaseModel):
    success: bool
    message: str = ""


class ShellStartResult(ActionResult):
    shell_path: str | None = None


class OutputResult(BaseModel):
    """Lines gathered from an interactive shell within one read budget."""

    success: bool
    message: str = ""
    stdout: list[str] = Field(default_factory=list)
    stderr: list[str] = Field(default_factory=list)
    timestamp: int = Field(default_factory=now_millis)


class HistoryResult(ActionResult):
    history: list[str] = Field(default_factory=list)


class SessionSummary(BaseModel):
    session_id: str
    working_directory: str
    process_running: bool = False
    current_command: str = ""
    process_start_time: int = 0
    history_size: int = 0
    created_at: int = 0
    last_activity: int = 0
    idle_time_seconds: int = 0


class SessionInfoResult(ActionResult):
    session: SessionSummary | None = None


class CleanupResult(BaseModel):
    success: bool = True
    removed: list[str] = Field(default_factory=list)
    remaining: int = 0


class TerminalCapabilities(BaseModel):
    supports_color: bool = True
    supports_unicode: bool = True
    supports_pipe: bool = True
    supports_background_processes: bool = True
    supports_job_control: bool = False
    supports_signals: bool = True


class TerminalInfo(BaseModel):
    """Static description of the host terminal facilities."""

    version: str
    available: bool = True
    features: list[str] = Field(default_factory=list)
    os_info: str = ""
    root_available: bool = False
    shell_path: str = ""
    environment: dict[str, str] = Field(default_factory=dict)
    capabilities: TerminalCapabilities = Field(default_factory=TerminalCapabilities)


class ProcessInfo(BaseModel):
    """One row of the host process table."""

    pid: int
    ppid: int = 0
    user: str = ""
    cpu: float = 0.0
    mem: float = 0.0
    vsz: int = 0
    rss: int = 0
    command: str = ""
