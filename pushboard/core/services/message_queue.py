"""
Message queue holding the live board.

The queue hands out sequence ids from a single shared counter and keeps
the events currently visible on the board in creation order.
"""

import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, List, Tuple

from loguru import logger

from ..domain.events import BroadcastEvent
from ..interfaces.lifecycle import IHealthCheckable
from ..interfaces.messaging import IMessageQueue


class MessageQueue(IMessageQueue, IHealthCheckable):
    """
    Ordered, capacity-bounded sequence of live events.

    All methods are synchronous and guarded by one lock, so they are safe
    to call from concurrent request handlers and never suspend.
    """

    def __init__(self, capacity: int = 0) -> None:
        """
        Initialize the queue.

        Args:
            capacity: Maximum number of live events, 0 for unbounded
        """
        if capacity < 0:
            raise ValueError("Capacity cannot be negative")

        self._capacity = capacity
        self._counter = 0
        self._events: Deque[BroadcastEvent] = deque()
        self._lock = threading.Lock()

        self._stats = {
            "enqueued": 0,
            "revoked": 0,
            "evicted": 0,
        }

    @property
    def capacity(self) -> int:
        return self._capacity

    def next_sequence_id(self) -> int:
        with self._lock:
            sequence_id = self._counter
            self._counter += 1
            return sequence_id

    def enqueue(self, event: BroadcastEvent) -> List[BroadcastEvent]:
        with self._lock:
            evicted = self._append(event)

        self._log_append(event, evicted)
        return evicted

    def enqueue_new(
        self, build: Callable[[int], BroadcastEvent]
    ) -> Tuple[BroadcastEvent, List[BroadcastEvent]]:
        """
        Allocate a sequence id and enqueue the event built from it in one step.

        Concurrent producers cannot interleave between allocation and
        enqueue, so the board stays in id order.

        Args:
            build: Called with the fresh sequence id, returns the event

        Returns:
            The enqueued event and the events evicted by it
        """
        with self._lock:
            sequence_id = self._counter
            self._counter += 1
            event = build(sequence_id)
            evicted = self._append(event)

        self._log_append(event, evicted)
        return event, evicted

    def _append(self, event: BroadcastEvent) -> List[BroadcastEvent]:
        # Caller holds the lock.
        if event.sequence_id >= self._counter:
            raise ValueError(
                f"Sequence id {event.sequence_id} was not issued by this queue")
        if self._events and event.sequence_id <= self._events[-1].sequence_id:
            raise ValueError(
                f"Sequence id {event.sequence_id} is not newer than the board tail")

        self._events.append(event)
        self._stats["enqueued"] += 1

        evicted: List[BroadcastEvent] = []
        if self._capacity:
            while len(self._events) > self._capacity:
                evicted.append(self._events.popleft())
            self._stats["evicted"] += len(evicted)
        return evicted

    def _log_append(self, event: BroadcastEvent, evicted: List[BroadcastEvent]) -> None:
        logger.info(f"Enqueued {event.kind.value} event {event.sequence_id}")
        for old in evicted:
            logger.debug(f"Evicted event {old.sequence_id} from the board")

    def revoke(self, sequence_id: int) -> bool:
        with self._lock:
            for event in self._events:
                if event.sequence_id == sequence_id:
                    self._events.remove(event)
                    self._stats["revoked"] += 1
                    break
            else:
                return False

        logger.info(f"Revoked event {sequence_id}")
        return True

    def snapshot(self) -> Tuple[BroadcastEvent, ...]:
        with self._lock:
            return tuple(self._events)

    def get_statistics(self) -> Dict[str, Any]:
        with self._lock:
            return {
                **self._stats,
                "live": len(self._events),
                "capacity": self._capacity,
                "next_sequence_id": self._counter,
            }

    async def check_health(self) -> Dict[str, Any]:
        return {
            "healthy": True,
            "status": "running",
            "details": self.get_statistics(),
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
