"""Terminal core: sessions, shell processes and one-shot commands.

Sessions live in a ``SessionRegistry``; each may own one interactive shell
whose output is pumped into bounded line channels by background threads.
One-shot commands go through the stateless ``CommandExecutor``.
"""

from termhost.terminal.channel import LineChannel
from termhost.terminal.executor import CommandExecutor
from termhost.terminal.launcher import ProcessLauncher, resolve_shell_path, run_to_completion
from termhost.terminal.registry import SessionRegistry
from termhost.terminal.session import ProcessStatus, ShellProcess, TerminalSession

__all__ = [
    "LineChannel",
    "CommandExecutor",
    "ProcessLauncher",
    "resolve_shell_path",
    "run_to_completion",
    "SessionRegistry",
    "ProcessStatus",
    "ShellProcess",
    "TerminalSession",
]
