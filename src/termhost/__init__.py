"""termhost — programmatic terminal sessions and shell execution."""

__version__ = "0.1.0"

from termhost.config import TermhostConfig  # noqa: E402
from termhost.events import EventType, Wire, WireEvent  # noqa: E402
from termhost.service import TerminalService  # noqa: E402

__all__ = [
    "__version__",
    "TermhostConfig",
    "EventType",
    "Wire",
    "WireEvent",
    "TerminalService",
]
