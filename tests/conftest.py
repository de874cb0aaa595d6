"""Shared fixtures: a /bin/sh-only config and registries that clean up after themselves."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator

import pytest

from termhost.config import ShellConfig, TermhostConfig
from termhost.service import TerminalService
from termhost.terminal.registry import SessionRegistry


@pytest.fixture
def config(monkeypatch: pytest.MonkeyPatch) -> TermhostConfig:
    # Pin the interactive shell so tests do not depend on the user's $SHELL.
    monkeypatch.delenv("SHELL", raising=False)
    return TermhostConfig(shell=ShellConfig(candidates=["/bin/sh"], fallback="/bin/sh"))


@pytest.fixture
def registry(config: TermhostConfig) -> Iterator[SessionRegistry]:
    reg = SessionRegistry(config)
    yield reg
    reg.shutdown()


@pytest.fixture
def service(config: TermhostConfig) -> Iterator[TerminalService]:
    svc = TerminalService(config)
    yield svc
    svc.shutdown()


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()
