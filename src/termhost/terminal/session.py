"""Terminal session — a working directory, environment and history,
optionally backed by one live interactive shell process."""

from __future__ import annotations

import enum
import logging
import os
import signal
import subprocess
import threading
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, Callable

from tenacity import RetryError, Retrying, retry_if_result, stop_after_delay, wait_fixed

from termhost.terminal.channel import LineChannel
from termhost.terminal.errors import StdinUnavailable, WaitFailed, WriteFailed
from termhost.terminal.models import SessionSummary, now_millis

logger = logging.getLogger(__name__)


def _gen_session_id() -> str:
    return f"terminal_{uuid.uuid4()}"


class ProcessStatus(enum.Enum):
    """Lifecycle states for a shell process."""

    RUNNING = "running"
    KILLING = "killing"  # Stop requested, waiting for process to die
    KILLED = "killed"  # Stopped by us
    EXITED = "exited"  # Process exited on its own


@dataclass
class ShellProcess:
    """A child process with piped stdio owned by exactly one session.

    Two reader threads move stdout/stderr lines into bounded channels and a
    watcher thread waits on the child, so the owner never blocks just to
    learn whether the process died.  ``read()`` is a timeout-bounded
    receive from those channels.

    The child is expected to run in its own process group
    (``start_new_session=True``) so stopping it also takes down anything
    it spawned.
    """

    proc: subprocess.Popen
    command: str = "interactive shell"
    max_lines: int = 10_000
    kill_wait_timeout: float = 2.0
    started_at: int = field(default_factory=now_millis)

    stdin: IO[bytes] | None = field(default=None, init=False)
    stdout: LineChannel = field(init=False)
    stderr: LineChannel = field(init=False)
    _data_ready: threading.Event = field(default_factory=threading.Event, init=False)
    _pgid: int = field(default=0, init=False)
    _status: ProcessStatus = field(default=ProcessStatus.RUNNING, init=False)
    _readers: list[threading.Thread] = field(default_factory=list, init=False)
    _watcher: threading.Thread | None = field(default=None, init=False)
    _on_exit: Callable[[ShellProcess, int | None], None] | None = field(
        default=None, init=False
    )

    def __post_init__(self) -> None:
        self.stdin = self.proc.stdin
        self.stdout = LineChannel(self.max_lines, self._data_ready)
        self.stderr = LineChannel(self.max_lines, self._data_ready)
        try:
            self._pgid = os.getpgid(self.proc.pid)
        except OSError:
            self._pgid = self.proc.pid

    def set_on_exit(self, callback: Callable[[ShellProcess, int | None], None]) -> None:
        """Set a callback invoked when the process exits on its own.

        Runs on the watcher thread.  Not called when the process is stopped
        through ``kill()`` / ``terminate()``.
        """
        self._on_exit = callback

    def start_io(self) -> None:
        """Start the reader threads and the exit watcher."""
        for name, stream, channel in (
            ("stdout", self.proc.stdout, self.stdout),
            ("stderr", self.proc.stderr, self.stderr),
        ):
            if stream is None:
                channel.close()
                continue
            t = threading.Thread(
                target=self._pump,
                args=(stream, channel),
                name=f"termhost-{name}-{self.proc.pid}",
                daemon=True,
            )
            t.start()
            self._readers.append(t)

        self._watcher = threading.Thread(
            target=self._watch_exit,
            name=f"termhost-watch-{self.proc.pid}",
            daemon=True,
        )
        self._watcher.start()

    def _pump(self, stream: IO[bytes], channel: LineChannel) -> None:
        """Copy lines from a pipe into a channel until end-of-stream."""
        try:
            for raw in iter(stream.readline, b""):
                channel.append(raw.decode("utf-8", errors="replace").rstrip("\r\n"))
        except (OSError, ValueError) as e:
            logger.debug("Reader for pid %d ended: %s", self.proc.pid, e)
        finally:
            channel.close()

    def _watch_exit(self) -> None:
        """Wait for the child, then record a natural exit."""
        try:
            exit_code: int | None = self.proc.wait()
        except Exception as e:
            logger.debug("Waiting on pid %d failed: %s", self.proc.pid, e)
            exit_code = None

        # Let the readers flush what the process wrote before it died.
        for t in self._readers:
            t.join(timeout=1.0)

        if self._status == ProcessStatus.RUNNING:
            self._status = ProcessStatus.EXITED
            logger.info("Shell pid %d exited (code=%s)", self.proc.pid, exit_code)
            if self._on_exit:
                try:
                    self._on_exit(self, exit_code)
                except Exception:
                    logger.exception("Error in on_exit callback for pid %d", self.proc.pid)

    def write_line(self, line: str) -> None:
        """Write ``line`` plus a newline to the child's stdin."""
        if self.stdin is None or self.stdin.closed:
            raise StdinUnavailable()
        try:
            self.stdin.write((line + "\n").encode("utf-8"))
            self.stdin.flush()
        except (OSError, ValueError) as e:
            raise WriteFailed(f"Failed to send input to shell: {e}") from e

    def read(self, timeout: float) -> tuple[list[str], list[str]]:
        """Gather output lines for up to ``timeout`` seconds.

        Returns early once both streams have ended and been drained.  Line
        order within a stream follows emission order; the relative order of
        stdout and stderr lines is lost.
        """
        deadline = time.monotonic() + max(timeout, 0.0)
        out: list[str] = []
        err: list[str] = []
        while True:
            self._data_ready.clear()
            out.extend(self.stdout.drain())
            err.extend(self.stderr.drain())
            if self.stdout.exhausted and self.stderr.exhausted:
                break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            self._data_ready.wait(remaining)
        return out, err

    def poll(self) -> int | None:
        """Non-blocking exit status check."""
        return self.proc.poll()

    def tail(self, n: int = 3) -> list[str]:
        """Last lines the process wrote to stdout, drained or not."""
        return self.stdout.read_tail(n)

    def _signal_group(self, sig: signal.Signals) -> None:
        # Never signal our own group when the child shares it.
        if self._pgid and self._pgid != os.getpgrp():
            os.killpg(self._pgid, sig)
        elif self.proc.poll() is None:
            self.proc.send_signal(sig)

    def kill(self) -> None:
        """Kill the entire process tree and release the pipes.

        Raises ``WaitFailed`` if the child is still unreaped after
        ``kill_wait_timeout``; calling again retries.
        """
        if self._status == ProcessStatus.KILLED:
            return

        if self._status == ProcessStatus.RUNNING:
            self._status = ProcessStatus.KILLING
        try:
            self._signal_group(signal.SIGKILL)
            logger.info("Killed shell pid %d (pgid=%d)", self.proc.pid, self._pgid)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        except OSError as e:
            logger.warning("Error killing shell pid %d: %s", self.proc.pid, e)

        self._close_stdin()
        # Reap the child so it does not linger as a zombie.
        try:
            self.proc.wait(timeout=self.kill_wait_timeout)
        except subprocess.TimeoutExpired as e:
            raise WaitFailed(
                f"Shell pid {self.proc.pid} not reaped {self.kill_wait_timeout}s after kill"
            ) from e

        if self._status == ProcessStatus.KILLING:
            self._status = ProcessStatus.KILLED

    def terminate(self, grace_period: float) -> None:
        """SIGTERM the process tree, wait up to ``grace_period``, then kill."""
        if grace_period <= 0 or self.proc.poll() is not None:
            self.kill()
            return

        self._status = ProcessStatus.KILLING
        try:
            self._signal_group(signal.SIGTERM)
        except ProcessLookupError:
            logger.debug("Process group already gone: %d", self._pgid)
        except OSError as e:
            logger.warning("Error terminating shell pid %d: %s", self.proc.pid, e)

        poll_exit = Retrying(
            stop=stop_after_delay(grace_period),
            wait=wait_fixed(0.05),
            retry=retry_if_result(lambda code: code is None),
        )
        try:
            poll_exit(self.proc.poll)
            logger.info("Shell pid %d terminated gracefully", self.proc.pid)
        except RetryError:
            logger.info(
                "Shell pid %d still alive after %.1fs, killing",
                self.proc.pid,
                grace_period,
            )
        self.kill()

    def _close_stdin(self) -> None:
        if self.stdin is not None:
            try:
                self.stdin.close()
            except OSError:
                pass
            self.stdin = None

    @property
    def pid(self) -> int:
        return self.proc.pid

    @property
    def alive(self) -> bool:
        return self._status == ProcessStatus.RUNNING and self.proc.poll() is None

    @property
    def status(self) -> ProcessStatus:
        if self._status == ProcessStatus.RUNNING and self.proc.poll() is not None:
            return ProcessStatus.EXITED
        return self._status


@dataclass
class TerminalSession:
    """A logical terminal context.

    All mutation happens under ``lock``; the registry hands out sessions
    only for the duration of one locked operation.  ``closed`` is set once
    the session leaves the registry so late callers holding a stale
    reference can tell.
    """

    working_directory: Path
    environment: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=_gen_session_id)
    history: list[str] = field(default_factory=list)
    created_at: int = field(default_factory=now_millis)
    last_activity: int = field(default_factory=now_millis)
    process: ShellProcess | None = None
    closed: bool = False
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _activity_mono: float = field(default_factory=time.monotonic, repr=False)

    def touch(self) -> None:
        """Record activity now."""
        self.last_activity = now_millis()
        self._activity_mono = time.monotonic()

    def idle_seconds(self, now: float | None = None) -> float:
        """Seconds since the last activity, on the monotonic clock."""
        return (time.monotonic() if now is None else now) - self._activity_mono

    @property
    def activity_stamp(self) -> float:
        """Monotonic time of the last activity."""
        return self._activity_mono

    def take_process(self) -> ShellProcess | None:
        """Detach and return the owned process, if any."""
        process, self.process = self.process, None
        return process

    def summary(self) -> SessionSummary:
        process = self.process
        return SessionSummary(
            session_id=self.id,
            working_directory=str(self.working_directory),
            process_running=process.alive if process else False,
            current_command=process.command if process else "",
            process_start_time=process.started_at if process else 0,
            history_size=len(self.history),
            created_at=self.created_at,
            last_activity=self.last_activity,
            idle_time_seconds=int(self.idle_seconds()),
        )
