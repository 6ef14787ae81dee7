"""
Messaging interfaces for the board queue and the broadcast hub.
"""

from abc import ABC, abstractmethod
from typing import Any, Iterable, List, Optional, Sequence

from ..domain.events import BroadcastEvent
from .lifecycle import IComponent


class IMessageQueue(ABC):
    """Ordered sequence of live board events."""

    @abstractmethod
    def next_sequence_id(self) -> int:
        """Return the next unused sequence id."""
        pass

    @abstractmethod
    def enqueue(self, event: BroadcastEvent) -> List[BroadcastEvent]:
        """
        Append an event to the tail of the board.

        Returns:
            Events evicted from the head to respect the capacity
        """
        pass

    @abstractmethod
    def revoke(self, sequence_id: int) -> bool:
        """Remove the live event with ``sequence_id``; return whether found."""
        pass

    @abstractmethod
    def snapshot(self) -> Sequence[BroadcastEvent]:
        """Consistent, ordered copy of the live events."""
        pass


class ISubscriberChannel(ABC):
    """A connected client that can receive serialized events."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """
        Deliver one serialized event.

        Raises:
            Exception: If the connection is broken
        """
        pass


class IBroadcastHub(IComponent):
    """Fan-out of serialized events to all connected subscribers."""

    @abstractmethod
    def subscribe(self, channel: ISubscriberChannel,
                  backlog: Optional[Iterable[str]] = None) -> Any:
        """
        Register a new subscriber.

        Args:
            channel: Connection to deliver to
            backlog: Messages queued for this subscriber ahead of live ones

        Returns:
            Subscriber handle
        """
        pass

    @abstractmethod
    def publish(self, message: str) -> int:
        """
        Deliver a serialized event to every subscriber, best effort.

        Returns:
            Number of subscribers the message was handed to
        """
        pass

    @abstractmethod
    def unsubscribe(self, subscriber: Any) -> bool:
        """Remove a subscriber; idempotent."""
        pass
