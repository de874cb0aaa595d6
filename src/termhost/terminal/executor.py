"""Command executor — stateless one-shot command execution.

Nothing here touches the session registry, so calls may run fully
concurrently from any number of threads.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path

from termhost.config import TermhostConfig
from termhost.terminal.errors import ProcessSpawnFailed
from termhost.terminal.launcher import run_to_completion
from termhost.terminal.models import CommandResult

logger = logging.getLogger(__name__)

ROOT_WORKING_DIRECTORY = "/"


class CommandExecutor:
    """Runs single commands to completion.

    Handles the built-ins ``clear`` and ``cd`` without spawning anything;
    everything else goes through ``sh -c`` (or ``su -c`` in root mode).
    """

    def __init__(self, config: TermhostConfig | None = None) -> None:
        self._config = config or TermhostConfig()

    def execute(
        self,
        command: str,
        working_dir: str,
        as_root: bool = False,
        timeout: float | None = None,
    ) -> CommandResult:
        """Execute ``command`` and return its aggregated result.

        Args:
            command: Shell command text.
            working_dir: Directory to run in (ignored in root mode, which
                always runs at ``/``).
            as_root: Run through ``su -c`` instead of ``sh -c``.
            timeout: Seconds before the command is killed.  Defaults to the
                configured ``execution.command_timeout`` (none).
        """
        if not as_root:
            builtin = self._run_builtin(command, working_dir)
            if builtin is not None:
                return builtin

        if timeout is None:
            timeout = self._config.execution.command_timeout

        root_cmd = self._config.execution.root_command
        if as_root:
            argv = [root_cmd, "-c", command]
            echoed = f"{root_cmd} -c '{command}'"
            cwd = ROOT_WORKING_DIRECTORY
            spawn_error = "Failed to execute root command"
        else:
            argv = ["sh", "-c", command]
            echoed = command
            cwd = working_dir
            spawn_error = "Failed to execute command"

        start = time.monotonic()
        try:
            completed = run_to_completion(argv, cwd=cwd, timeout=timeout)
        except ProcessSpawnFailed as e:
            logger.warning("%s %r: %s", spawn_error, command, e.os_error)
            return CommandResult(
                success=False,
                stderr=[f"{spawn_error}: {e.os_error}"],
                exit_code=-1,
                duration_ms=_elapsed_ms(start),
                command=echoed,
                working_directory=cwd,
            )

        duration = _elapsed_ms(start)
        stderr = completed.stderr
        if completed.timed_out:
            stderr = [*stderr, f"Command timed out after {timeout}s"]
            logger.warning("Command timed out after %ss: %s", timeout, command)

        code = completed.returncode
        exit_code = code if code is not None and code >= 0 else -1
        return CommandResult(
            success=code == 0 and not completed.timed_out,
            stdout=completed.stdout,
            stderr=stderr,
            exit_code=exit_code,
            duration_ms=duration,
            command=echoed,
            working_directory=cwd,
        )

    def _run_builtin(self, command: str, working_dir: str) -> CommandResult | None:
        """Handle ``clear`` and ``cd <dir>``; None for anything else."""
        if command.strip() == "clear":
            return CommandResult(
                success=True,
                command=command,
                working_directory=working_dir,
            )

        if command.startswith("cd "):
            target = command[3:].strip()
            path = resolve_cd_target(target, working_dir)
            if path.is_dir():
                return CommandResult(
                    success=True,
                    command=command,
                    working_directory=os.path.normpath(str(path)),
                )
            return CommandResult(
                success=False,
                stderr=[f"cd: {target}: No such file or directory"],
                exit_code=1,
                command=command,
                working_directory=working_dir,
            )

        return None

    def is_root_available(self) -> bool:
        """Probe whether ``su -c`` yields uid 0 on this host."""
        try:
            completed = run_to_completion(
                [self._config.execution.root_command, "-c", "id -u"],
                timeout=self._config.execution.root_probe_timeout,
            )
        except ProcessSpawnFailed:
            return False
        if completed.timed_out:
            return False
        return bool(completed.stdout) and completed.stdout[0].strip() == "0"


def resolve_cd_target(target: str, working_dir: str) -> Path:
    """Resolve a ``cd`` argument: absolute as-is, otherwise under ``working_dir``."""
    if target.startswith("/"):
        return Path(target)
    return Path(working_dir) / target


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
