"""
Tests for the broadcast hub.

This module tests subscriber registration, fan-out and pruning of
subscribers whose connection fails.
"""

import asyncio
from typing import List

import pytest
from unittest.mock import AsyncMock, Mock

from pushboard.core.interfaces.messaging import ISubscriberChannel
from pushboard.core.services.broadcast_hub import BroadcastHub, Subscriber


class RecordingChannel(ISubscriberChannel):
    """Channel that keeps every message it is sent."""

    def __init__(self) -> None:
        self.messages: List[str] = []

    async def send(self, message: str) -> None:
        self.messages.append(message)


class BrokenChannel(ISubscriberChannel):
    """Channel whose connection is gone."""

    async def send(self, message: str) -> None:
        raise ConnectionResetError("peer went away")


async def _drain(hub: BroadcastHub, subscriber: Subscriber) -> None:
    """Close the subscriber after its queue is written and wait for delivery."""
    task = asyncio.create_task(hub.deliver(subscriber))
    while subscriber.pending and not task.done():
        await asyncio.sleep(0)
    hub.unsubscribe(subscriber)
    await asyncio.wait_for(task, timeout=1.0)


class TestSubscriber:
    """Subscriber outbox behaviour."""

    async def test_offer_and_next_message(self) -> None:
        subscriber = Subscriber(RecordingChannel(), outbox_size=4)

        assert subscriber.offer("a") is True
        assert subscriber.pending == 1
        assert await subscriber.next_message() == "a"

    async def test_offer_fails_when_full(self) -> None:
        subscriber = Subscriber(RecordingChannel(), outbox_size=1)

        assert subscriber.offer("a") is True
        assert subscriber.offer("b") is False

    async def test_close_wakes_reader(self) -> None:
        subscriber = Subscriber(RecordingChannel(), outbox_size=1)
        subscriber.offer("a")

        subscriber.close()

        assert subscriber.closed is True
        assert subscriber.offer("b") is False
        assert await subscriber.next_message() is None


class TestBroadcastHub:
    """Hub fan-out."""

    @pytest.fixture
    async def hub(self) -> BroadcastHub:
        hub = BroadcastHub(outbox_size=8)
        await hub.start()
        yield hub
        await hub.stop()

    async def test_publish_reaches_every_subscriber(self, hub: BroadcastHub) -> None:
        channels = [RecordingChannel() for _ in range(3)]
        subscribers = [hub.subscribe(channel) for channel in channels]

        assert hub.publish("m1") == 3
        assert hub.publish("m2") == 3

        for subscriber in subscribers:
            await _drain(hub, subscriber)
        for channel in channels:
            assert channel.messages == ["m1", "m2"]

    async def test_publish_with_no_subscribers(self, hub: BroadcastHub) -> None:
        assert hub.publish("nobody") == 0

    async def test_backlog_delivered_before_live_messages(self, hub: BroadcastHub) -> None:
        channel = RecordingChannel()
        subscriber = hub.subscribe(channel, backlog=["old1", "old2"])
        hub.publish("live")

        await _drain(hub, subscriber)

        assert channel.messages == ["old1", "old2", "live"]

    async def test_backlog_larger_than_outbox_is_kept_whole(self) -> None:
        hub = BroadcastHub(outbox_size=2)
        channel = RecordingChannel()
        backlog = [f"old{i}" for i in range(5)]

        subscriber = hub.subscribe(channel, backlog=backlog)
        assert subscriber.pending == 5

        assert hub.publish("live1") == 1
        assert hub.publish("live2") == 1
        await _drain(hub, subscriber)

        assert channel.messages == backlog + ["live1", "live2"]

    async def test_broken_subscriber_is_pruned(self, hub: BroadcastHub) -> None:
        healthy = RecordingChannel()
        good = hub.subscribe(healthy)
        bad = hub.subscribe(BrokenChannel())

        hub.publish("m")
        await asyncio.wait_for(hub.deliver(bad), timeout=1.0)

        assert bad.closed is True
        assert hub.subscriber_count == 1

        hub.publish("after")
        await _drain(hub, good)
        assert healthy.messages == ["m", "after"]

    async def test_full_outbox_drops_subscriber(self) -> None:
        hub = BroadcastHub(outbox_size=1)
        await hub.start()
        slow = hub.subscribe(RecordingChannel())
        fast_channel = RecordingChannel()
        fast = hub.subscribe(fast_channel)
        fast_task = asyncio.create_task(hub.deliver(fast))

        hub.publish("one")
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        delivered = hub.publish("two")

        assert slow.closed is True
        assert delivered == 1
        assert hub.subscriber_count == 1

        hub.unsubscribe(fast)
        await asyncio.wait_for(fast_task, timeout=1.0)
        await hub.stop()

    async def test_unsubscribe_is_idempotent(self, hub: BroadcastHub) -> None:
        subscriber = hub.subscribe(RecordingChannel())

        assert hub.unsubscribe(subscriber) is True
        assert hub.unsubscribe(subscriber) is False
        assert hub.subscriber_count == 0

    async def test_unsubscribed_receives_nothing(self, hub: BroadcastHub) -> None:
        channel = Mock(spec=ISubscriberChannel)
        channel.send = AsyncMock()
        subscriber = hub.subscribe(channel)
        hub.unsubscribe(subscriber)

        hub.publish("late")
        await asyncio.wait_for(hub.deliver(subscriber), timeout=1.0)

        channel.send.assert_not_called()

    async def test_stop_closes_all_subscribers(self) -> None:
        hub = BroadcastHub()
        await hub.start()
        subscribers = [hub.subscribe(RecordingChannel()) for _ in range(2)]

        await hub.stop()

        assert hub.subscriber_count == 0
        assert all(s.closed for s in subscribers)

    async def test_health_reports_subscribers(self, hub: BroadcastHub) -> None:
        hub.subscribe(RecordingChannel())

        health = await hub.check_health()

        assert health["healthy"] is True
        assert health["details"]["subscribers"] == 1
        assert health["details"]["connections"][0]["pending"] == 0

    async def test_list_subscribers(self, hub: BroadcastHub) -> None:
        subscriber = hub.subscribe(RecordingChannel(), backlog=["x"])

        listing = hub.list_subscribers()

        assert listing[0]["id"] == subscriber.subscriber_id
        assert listing[0]["pending"] == 1
