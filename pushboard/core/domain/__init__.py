"""
Domain models for the push board.
"""

from .events import BroadcastEvent, EventKind

__all__ = [
    "BroadcastEvent",
    "EventKind",
]
