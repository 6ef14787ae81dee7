"""
Broadcast hub implementation.

The hub fans serialized events out to every connected subscriber. Publishing
only places the message in each subscriber's outbox, so it never waits on a
slow connection; a per-subscriber delivery loop performs the network writes
in order and prunes the subscriber on the first failed write.
"""

import asyncio
import time
import uuid
from typing import Any, Dict, Iterable, List, Optional, Set

from loguru import logger

from ..interfaces.messaging import IBroadcastHub, ISubscriberChannel

DEFAULT_OUTBOX_SIZE = 256


class Subscriber:
    """Handle for one connected push receiver."""

    def __init__(self, channel: ISubscriberChannel, outbox_size: int = DEFAULT_OUTBOX_SIZE) -> None:
        self.subscriber_id = uuid.uuid4().hex
        self.channel = channel
        self.connected_at = time.time()
        self.delivered = 0
        self._outbox: asyncio.Queue[Optional[str]] = asyncio.Queue(maxsize=outbox_size)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending(self) -> int:
        return self._outbox.qsize()

    def offer(self, message: str) -> bool:
        """Queue a message; False if closed or the outbox is full."""
        if self._closed:
            return False
        try:
            self._outbox.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def next_message(self) -> Optional[str]:
        """Wait for the next queued message; None once closed."""
        if self._closed and self._outbox.empty():
            return None
        return await self._outbox.get()

    def close(self) -> None:
        """Stop accepting messages and wake the delivery loop."""
        if self._closed:
            return
        self._closed = True
        while True:
            try:
                self._outbox.put_nowait(None)
                return
            except asyncio.QueueFull:
                # Undelivered messages are dropped with the connection.
                self._outbox.get_nowait()


class BroadcastHub(IBroadcastHub):
    """
    Subscriber registry with best-effort fan-out.

    The subscriber set is copied before iteration, so subscribe and
    unsubscribe may run while a publish is in progress.
    """

    def __init__(self, outbox_size: int = DEFAULT_OUTBOX_SIZE) -> None:
        self._outbox_size = outbox_size
        self._subscribers: Set[Subscriber] = set()
        self._running = False

        self._stats = {
            "published": 0,
            "deliveries": 0,
            "dropped_subscribers": 0,
            "total_subscribers": 0,
        }

    @property
    def name(self) -> str:
        return "BroadcastHub"

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        logger.info("Broadcast hub started")

    async def stop(self) -> None:
        if not self._running:
            return
        self._running = False

        for subscriber in list(self._subscribers):
            self.unsubscribe(subscriber)

        logger.info("Broadcast hub stopped")

    async def check_health(self) -> Dict[str, Any]:
        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "details": {
                "subscribers": len(self._subscribers),
                "connections": self.list_subscribers(),
                "statistics": dict(self._stats),
            },
        }

    def subscribe(self, channel: ISubscriberChannel,
                  backlog: Optional[Iterable[str]] = None) -> Subscriber:
        """
        Register a channel, queueing ``backlog`` ahead of live messages.

        The outbox is grown by the backlog length so a full board never
        crowds out the live headroom.
        """
        pending = list(backlog or ())
        outbox_size = self._outbox_size + len(pending) if self._outbox_size > 0 else 0
        subscriber = Subscriber(channel, outbox_size)
        for message in pending:
            subscriber.offer(message)

        self._subscribers.add(subscriber)
        self._stats["total_subscribers"] += 1
        logger.info(
            f"Subscriber {subscriber.subscriber_id} joined. Total subscribers: {len(self._subscribers)}")
        return subscriber

    def unsubscribe(self, subscriber: Subscriber) -> bool:
        subscriber.close()
        if subscriber not in self._subscribers:
            return False

        self._subscribers.discard(subscriber)
        logger.info(
            f"Subscriber {subscriber.subscriber_id} left. Total subscribers: {len(self._subscribers)}")
        return True

    def publish(self, message: str) -> int:
        self._stats["published"] += 1
        delivered = 0
        dropped: List[Subscriber] = []

        for subscriber in list(self._subscribers):
            if subscriber.offer(message):
                delivered += 1
            else:
                dropped.append(subscriber)

        for subscriber in dropped:
            logger.warning(f"Dropping unresponsive subscriber {subscriber.subscriber_id}")
            self._stats["dropped_subscribers"] += 1
            self.unsubscribe(subscriber)

        self._stats["deliveries"] += delivered
        return delivered

    async def deliver(self, subscriber: Subscriber) -> None:
        """
        Write queued messages to the subscriber's channel until it closes.

        A failed write removes the subscriber without affecting any other.
        """
        try:
            while True:
                message = await subscriber.next_message()
                if message is None:
                    break
                await subscriber.channel.send(message)
                subscriber.delivered += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Failed to push to subscriber {subscriber.subscriber_id}: {e}")
            self._stats["dropped_subscribers"] += 1
        finally:
            self.unsubscribe(subscriber)

    def list_subscribers(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": subscriber.subscriber_id,
                "connected_at": subscriber.connected_at,
                "delivered": subscriber.delivered,
                "pending": subscriber.pending,
            }
            for subscriber in self._subscribers
        ]
