"""Text helpers for shell output and command-line completion."""

from __future__ import annotations

import os
import re

from rich.text import Text

_ANSI_RE = re.compile(r"\x1b\[[0-9;?]*[a-zA-Z]")

COMMON_COMMANDS = [
    "ls", "cd", "pwd", "mkdir", "rm", "cp", "mv", "cat", "grep", "find",
    "ps", "kill", "chmod", "which", "uname", "whoami", "date", "clear",
    "echo", "sh", "bash", "touch", "ln", "du", "df", "tar", "gzip", "gunzip",
    "apt", "dpkg", "git", "adb", "gradle", "javac", "kotlinc", "cargo", "rustc",
]  # fmt: skip


def strip_ansi(text: str) -> str:
    """Strip ANSI escape sequences from text."""
    return _ANSI_RE.sub("", text)


def sanitize_binary_output(text: str) -> str:
    """Remove binary garbage from output.

    Keeps printable chars, tabs, newlines, and carriage returns.
    Strips everything else (control chars, undefined code points, format chars).
    """
    cleaned = []
    for ch in text:
        cp = ord(ch)
        if ch in ("\t", "\n", "\r"):
            cleaned.append(ch)
        elif cp >= 32 and cp not in range(0x7F, 0xA0):
            if cp not in range(0xFFF9, 0xFFFC):
                cleaned.append(ch)
    return "".join(cleaned)


def _line_style(line: str) -> str | None:
    if line.startswith("error:") or ": error:" in line:
        return "red"
    if line.startswith("warning:") or ": warning:" in line:
        return "yellow"
    if line.startswith("#") or line.startswith("//"):
        return "green"
    if "success" in line or "completed" in line:
        return "green"
    return None


def highlight_output(text: str) -> Text:
    """Colour compiler-ish output line by line for display.

    Errors red, warnings yellow, comments and success lines green.
    """
    result = Text()
    for line in strip_ansi(text).splitlines():
        result.append(line, style=_line_style(line))
        result.append("\n")
    return result


def complete_command(partial: str, cwd: str | None = None) -> list[str]:
    """Suggest completions for the last word of ``partial``.

    A word containing ``/`` completes against the filesystem (relative
    paths resolve under ``cwd``); directories get a trailing ``/``.  Any
    other word completes against a list of common commands.
    """
    words = partial.split()
    if not words or partial[-1:].isspace():
        return []
    last = words[-1]

    if "/" not in last:
        return [cmd for cmd in COMMON_COMMANDS if cmd.startswith(last)]

    parent, prefix = os.path.split(last)
    lookup = parent if os.path.isabs(parent) or cwd is None else os.path.join(cwd, parent)
    try:
        with os.scandir(lookup) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError:
        return []

    completions = []
    for entry in entries:
        if not entry.name.startswith(prefix):
            continue
        completion = os.path.join(parent, entry.name)
        try:
            if entry.is_dir():
                completion += "/"
        except OSError:
            pass
        completions.append(completion)
    return completions
