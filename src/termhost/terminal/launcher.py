"""Spawning one-shot and interactive shell subprocesses."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from termhost.config import DEFAULT_SHELL_CANDIDATES, TermhostConfig
from termhost.terminal.errors import ProcessSpawnFailed
from termhost.terminal.session import ShellProcess, TerminalSession

logger = logging.getLogger(__name__)


def resolve_shell_path(
    env: Mapping[str, str] | None = None,
    candidates: Sequence[str] = DEFAULT_SHELL_CANDIDATES,
    fallback: str = "/bin/sh",
) -> str:
    """Pick the shell binary for an interactive session.

    ``SHELL`` from ``env`` (default: the ambient environment) wins if it
    names an existing executable file, then the first existing candidate,
    then ``fallback``.
    """
    env = os.environ if env is None else env
    shell = env.get("SHELL", "")
    if shell and os.path.isfile(shell) and os.access(shell, os.X_OK):
        return shell
    for candidate in candidates:
        if os.path.exists(candidate):
            return candidate
    return fallback


@dataclass
class Completed:
    """Raw result of ``run_to_completion``."""

    stdout: list[str] = field(default_factory=list)
    stderr: list[str] = field(default_factory=list)
    returncode: int | None = None
    timed_out: bool = False


def run_to_completion(
    argv: Sequence[str],
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    timeout: float | None = None,
) -> Completed:
    """Run a command to completion and capture its output line by line.

    The child gets its own process group; on timeout the whole group is
    killed and ``timed_out`` is set.  Raises ``ProcessSpawnFailed`` when
    the command cannot be started.
    """
    try:
        proc = subprocess.Popen(
            list(argv),
            cwd=cwd,
            env=dict(env) if env is not None else None,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        raise ProcessSpawnFailed(str(e), os_error=str(e)) from e

    timed_out = False
    try:
        out, err = proc.communicate(timeout=timeout)
    except subprocess.TimeoutExpired:
        timed_out = True
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
        out, err = proc.communicate()

    return Completed(
        stdout=_split_lines(out),
        stderr=_split_lines(err),
        returncode=proc.returncode,
        timed_out=timed_out,
    )


def _split_lines(data: bytes | None) -> list[str]:
    if not data:
        return []
    return data.decode("utf-8", errors="replace").splitlines()


class ProcessLauncher:
    """Spawns interactive shells bound to sessions."""

    def __init__(self, config: TermhostConfig | None = None) -> None:
        self._config = config or TermhostConfig()

    def shell_path(self, env: Mapping[str, str] | None = None) -> str:
        return resolve_shell_path(
            env,
            candidates=self._config.shell.candidates,
            fallback=self._config.shell.fallback,
        )

    def spawn_shell(
        self,
        session: TerminalSession,
        on_exit: Callable[[ShellProcess, int | None], None] | None = None,
    ) -> tuple[ShellProcess, str]:
        """Start an interactive shell for ``session``.

        The shell sees exactly the session's environment (the ambient one
        is not inherited) and starts in the session's working directory.
        Returns the process, with its I/O threads running, and the shell
        path used.
        """
        shell_path = self.shell_path(session.environment)
        start = time.monotonic()
        try:
            proc = subprocess.Popen(
                [shell_path],
                cwd=str(session.working_directory),
                env=dict(session.environment),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise ProcessSpawnFailed(f"Failed to start shell: {e}", os_error=str(e)) from e

        process = ShellProcess(
            proc=proc,
            command="interactive shell",
            max_lines=self._config.session.channel_max_lines,
            kill_wait_timeout=self._config.session.kill_wait_timeout,
        )
        if on_exit is not None:
            process.set_on_exit(on_exit)
        process.start_io()
        logger.info(
            "Shell started for session %s: pid=%d shell=%s (%.1fms)",
            session.id,
            proc.pid,
            shell_path,
            (time.monotonic() - start) * 1000,
        )
        return process, shell_path
