"""
Pushboard - a shared clipboard board for text snippets and files.

Clients post text or upload files in chunks; every connected push client
sees each announcement in order, and late joiners are replayed the recent
history of the board.
"""

__version__ = "0.1.0"

from .core.domain.events import BroadcastEvent, EventKind
from .core.exceptions import PushBoardError
from .application.container import Container, IContainer

__all__ = [
    "BroadcastEvent",
    "EventKind",
    "PushBoardError",
    "Container",
    "IContainer",
]
