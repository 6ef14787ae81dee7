"""
Core module containing the board's domain model, service interfaces and
the in-memory services that order and fan out announcements.
"""

from .interfaces.lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .interfaces.messaging import IBroadcastHub, IMessageQueue, ISubscriberChannel
from .domain.events import BroadcastEvent, EventKind

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "IBroadcastHub",
    "IMessageQueue",
    "ISubscriberChannel",
    "BroadcastEvent",
    "EventKind",
]
