"""Host process table helpers built on the one-shot runner."""

from __future__ import annotations

import logging
import os
import signal

from termhost.terminal.errors import ProcessSpawnFailed
from termhost.terminal.launcher import run_to_completion
from termhost.terminal.models import ProcessInfo

logger = logging.getLogger(__name__)

_PS_COLUMNS = "user,pid,ppid,pcpu,pmem,vsz,rss,args"


def parse_ps_output(lines: list[str]) -> list[ProcessInfo]:
    """Parse ``ps -eo user,pid,ppid,pcpu,pmem,vsz,rss,args`` output (header first)."""
    processes = []
    for line in lines[1:]:
        fields = line.split(None, 7)
        if len(fields) < 8:
            continue
        try:
            processes.append(
                ProcessInfo(
                    user=fields[0],
                    pid=int(fields[1]),
                    ppid=int(fields[2]),
                    cpu=float(fields[3]),
                    mem=float(fields[4]),
                    vsz=int(fields[5]),
                    rss=int(fields[6]),
                    command=fields[7],
                )
            )
        except ValueError:
            logger.debug("Skipping unparsable ps line: %s", line)
    return processes


def list_processes() -> list[ProcessInfo]:
    """Snapshot of the host process table."""
    try:
        completed = run_to_completion(["ps", "-eo", _PS_COLUMNS])
    except ProcessSpawnFailed as e:
        logger.warning("Cannot run ps: %s", e.os_error)
        return []
    if completed.returncode != 0:
        logger.warning("ps exited with %s: %s", completed.returncode, completed.stderr)
        return []
    return parse_ps_output(completed.stdout)


def kill_process(pid: int, sig: signal.Signals = signal.SIGTERM) -> bool:
    """Send ``sig`` to ``pid``. Returns False if it could not be delivered."""
    try:
        os.kill(pid, sig)
    except OSError as e:
        logger.warning("Failed to kill pid %d: %s", pid, e)
        return False
    return True
