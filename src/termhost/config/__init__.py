"""Configuration — Pydantic models for termhost settings."""

from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field

DEFAULT_SHELL_CANDIDATES = [
    "/system/bin/sh",
    "/bin/bash",
    "/bin/sh",
    "/bin/zsh",
    "/system/bin/bash",
]


class ShellConfig(BaseModel):
    """How the interactive shell binary is chosen.

    ``$SHELL`` wins when it points at an existing executable; otherwise the
    first existing candidate; otherwise ``fallback``.
    """

    candidates: list[str] = Field(default_factory=lambda: list(DEFAULT_SHELL_CANDIDATES))
    fallback: str = Field(default="/bin/sh")


class SessionConfig(BaseModel):
    """Per-session defaults and interactive process handling."""

    default_root: str = Field(
        default="/",
        description="Working directory reported for unknown sessions",
    )
    environment: dict[str, str] = Field(
        default_factory=lambda: {
            "TERM": "xterm-256color",
            "LANG": "en_US.UTF-8",
            "PS1": "\\[\\e[32m\\]\\u@\\h:\\[\\e[34m\\]\\w\\[\\e[0m\\]\\$ ",
            "HISTSIZE": "1000",
            "HISTFILESIZE": "2000",
        },
        description="Synthesized variables layered over the ambient environment",
    )
    channel_max_lines: int = Field(
        default=10_000, description="Max buffered lines per output stream"
    )
    stop_grace_period: float = Field(
        default=0.0,
        description=(
            "Seconds to wait after SIGTERM before SIGKILL when stopping a shell. "
            "0 means kill immediately."
        ),
    )
    kill_wait_timeout: float = Field(
        default=2.0, description="Seconds to wait for a killed child to be reaped"
    )


class ExecutionConfig(BaseModel):
    """One-shot command execution."""

    command_timeout: float | None = Field(
        default=None, description="Seconds before a one-shot command is killed"
    )
    root_command: str = Field(default="su")
    root_probe_timeout: float = Field(default=5.0)


class TermhostConfig(BaseModel):
    """Top-level termhost configuration."""

    shell: ShellConfig = Field(default_factory=ShellConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    execution: ExecutionConfig = Field(default_factory=ExecutionConfig)

    @classmethod
    def load(cls, config_path: str | None = None) -> TermhostConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            TERMHOST_DEFAULT_ROOT        - Working directory reported for unknown sessions
            TERMHOST_FALLBACK_SHELL      - Shell used when no candidate exists
            TERMHOST_STOP_GRACE_PERIOD   - Seconds between SIGTERM and SIGKILL on stop
            TERMHOST_CHANNEL_MAX_LINES   - Max buffered lines per output stream
            TERMHOST_COMMAND_TIMEOUT     - Timeout for one-shot commands (seconds)
        """
        try:
            from dotenv import load_dotenv

            load_dotenv(override=True)
        except ImportError:
            pass

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            import json

            with open(config_path) as f:
                config_data = json.load(f)

        shell = config_data.get("shell", {})
        session = config_data.get("session", {})
        execution = config_data.get("execution", {})

        env_fallback = os.environ.get("TERMHOST_FALLBACK_SHELL")
        if env_fallback:
            shell["fallback"] = env_fallback

        env_root = os.environ.get("TERMHOST_DEFAULT_ROOT")
        if env_root:
            session["default_root"] = env_root

        env_grace = os.environ.get("TERMHOST_STOP_GRACE_PERIOD")
        if env_grace:
            session["stop_grace_period"] = float(env_grace)

        env_max_lines = os.environ.get("TERMHOST_CHANNEL_MAX_LINES")
        if env_max_lines:
            session["channel_max_lines"] = int(env_max_lines)

        env_timeout = os.environ.get("TERMHOST_COMMAND_TIMEOUT")
        if env_timeout:
            execution["command_timeout"] = float(env_timeout)

        if shell:
            config_data["shell"] = shell
        if session:
            config_data["session"] = session
        if execution:
            config_data["execution"] = execution

        return cls.model_validate(config_data)
