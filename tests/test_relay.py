"""
Tests for the push relay.

These tests wire a real store, queue and hub together and check what the
board and the subscribers observe for each operation.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List

import pytest
from unittest.mock import AsyncMock, Mock

from pushboard.application.relay import PushRelay, escape_html
from pushboard.core.domain.events import EventKind
from pushboard.core.exceptions import LimitExceeded, NotFound, TransportFailure, Unsatisfiable, UnknownSession
from pushboard.core.interfaces.messaging import ISubscriberChannel
from pushboard.core.interfaces.thumbnail import IThumbnailGenerator
from pushboard.core.services.broadcast_hub import BroadcastHub, Subscriber
from pushboard.core.services.message_queue import MessageQueue
from pushboard.infrastructure.services.upload.store import UploadSessionStore


class RecordingChannel(ISubscriberChannel):
    def __init__(self) -> None:
        self.messages: List[Dict[str, Any]] = []

    async def send(self, message: str) -> None:
        self.messages.append(json.loads(message))


@pytest.fixture
async def store(tmp_path: Path) -> UploadSessionStore:
    store = UploadSessionStore(storage_dir=str(tmp_path), sweep_interval=0)
    await store.start()
    yield store
    await store.stop()


@pytest.fixture
def relay(store: UploadSessionStore) -> PushRelay:
    return PushRelay(store, MessageQueue(capacity=3), BroadcastHub(), text_limit=10)


async def _received(relay: PushRelay, subscriber: Subscriber) -> List[Dict[str, Any]]:
    """Flush everything queued for the subscriber and return what it got."""
    channel = subscriber.channel
    task = asyncio.create_task(relay.hub.deliver(subscriber))
    while subscriber.pending and not task.done():
        await asyncio.sleep(0)
    relay.close_subscription(subscriber)
    await asyncio.wait_for(task, timeout=1.0)
    return channel.messages  # type: ignore[attr-defined, no-any-return]


async def _upload(relay: PushRelay, name: str, data: bytes) -> str:
    session_id = await relay.create_upload_session(name)
    await relay.append_chunk(session_id, data)
    return session_id


class TestEscapeHtml:

    def test_escapes_markup(self) -> None:
        assert escape_html("<a href=\"x\">'&'</a>") == (
            "&lt;a href=&quot;x&quot;&gt;&#039;&amp;&#039;&lt;/a&gt;")

    def test_plain_text_unchanged(self) -> None:
        assert escape_html("hello world") == "hello world"


class TestTextEvents:
    """Text posts."""

    async def test_text_at_limit_is_accepted(self, relay: PushRelay) -> None:
        event = await relay.create_text_event("x" * 10)

        assert event.sequence_id == 0
        assert event.kind == EventKind.TEXT
        assert relay.board_snapshot() == [event]

    async def test_text_over_limit_is_rejected(self, relay: PushRelay) -> None:
        with pytest.raises(LimitExceeded):
            await relay.create_text_event("x" * 11)

        assert relay.board_snapshot() == []
        assert relay.queue.get_statistics()["next_sequence_id"] == 0

    async def test_text_is_escaped(self, relay: PushRelay) -> None:
        event = await relay.create_text_event("<b>")

        assert event.payload["content"] == "&lt;b&gt;"

    async def test_subscribers_see_events_in_order(self, relay: PushRelay) -> None:
        first = relay.open_subscription(RecordingChannel())
        second = relay.open_subscription(RecordingChannel())

        for content in ("a", "b", "c"):
            await relay.create_text_event(content)

        for subscriber in (first, second):
            messages = await _received(relay, subscriber)
            assert [m["data"]["content"] for m in messages] == ["a", "b", "c"]
            assert [m["data"]["id"] for m in messages] == [0, 1, 2]

    async def test_late_joiner_gets_snapshot_first(self, relay: PushRelay) -> None:
        await relay.create_text_event("old")
        subscriber = relay.open_subscription(RecordingChannel())
        await relay.create_text_event("new")

        messages = await _received(relay, subscriber)

        assert [m["data"]["content"] for m in messages] == ["old", "new"]

    async def test_broken_subscriber_leaves_board_intact(self, relay: PushRelay) -> None:
        broken_channel = Mock(spec=ISubscriberChannel)
        broken_channel.send = AsyncMock(side_effect=ConnectionResetError("gone"))
        broken = relay.open_subscription(broken_channel)
        healthy = relay.open_subscription(RecordingChannel())

        first = await relay.create_text_event("a")
        await asyncio.wait_for(relay.hub.deliver(broken), timeout=1.0)
        second = await relay.create_text_event("b")

        assert broken.closed is True
        assert relay.hub.subscriber_count == 1
        assert relay.board_snapshot() == [first, second]
        messages = await _received(relay, healthy)
        assert [m["data"]["content"] for m in messages] == ["a", "b"]

    async def test_late_joiner_gets_board_larger_than_outbox(self, store: UploadSessionStore) -> None:
        relay = PushRelay(store, MessageQueue(), BroadcastHub(outbox_size=4))
        for i in range(20):
            await relay.create_text_event(str(i))

        subscriber = relay.open_subscription(RecordingChannel())
        assert subscriber.pending == 20
        assert relay.hub.subscriber_count == 1

        await relay.create_text_event("live")
        messages = await _received(relay, subscriber)

        assert [m["data"]["content"] for m in messages] == [str(i) for i in range(20)] + ["live"]


class TestFileEvents:
    """Uploads announced on the board."""

    async def test_finish_announces_file(self, relay: PushRelay, store: UploadSessionStore) -> None:
        subscriber = relay.open_subscription(RecordingChannel())
        session_id = await _upload(relay, "song.mp3", b"abcdef")

        event = await relay.finish_upload(session_id)

        assert event.kind == EventKind.FILE
        assert event.payload["name"] == "song.mp3"
        assert event.payload["size"] == 6
        assert event.payload["cache"] == session_id
        assert "thumbnail" not in event.payload

        info = (await store.get(session_id)).get_info()
        assert event.payload["expire"] == int(info.expires_at)

        messages = await _received(relay, subscriber)
        assert messages[0]["event"] == "receive"
        assert messages[0]["data"]["type"] == "file"

    async def test_finish_twice_fails(self, relay: PushRelay) -> None:
        session_id = await _upload(relay, "a.txt", b"1")
        await relay.finish_upload(session_id)

        with pytest.raises(UnknownSession):
            await relay.finish_upload(session_id)

        assert len(relay.board_snapshot()) == 1

    async def test_thumbnail_attached(self, store: UploadSessionStore) -> None:
        thumbnailer = Mock(spec=IThumbnailGenerator)
        thumbnailer.generate = AsyncMock(return_value="data:image/png;base64,AA")
        relay = PushRelay(store, MessageQueue(), BroadcastHub(), thumbnailer=thumbnailer)
        session_id = await _upload(relay, "p.png", b"png")

        event = await relay.finish_upload(session_id)

        assert event.payload["thumbnail"] == "data:image/png;base64,AA"
        thumbnailer.generate.assert_awaited_once()

    async def test_thumbnail_failure_is_ignored(self, store: UploadSessionStore) -> None:
        thumbnailer = Mock(spec=IThumbnailGenerator)
        thumbnailer.generate = AsyncMock(side_effect=RuntimeError("bad image"))
        relay = PushRelay(store, MessageQueue(), BroadcastHub(), thumbnailer=thumbnailer)
        session_id = await _upload(relay, "p.png", b"png")

        event = await relay.finish_upload(session_id)

        assert "thumbnail" not in event.payload

    async def test_file_removed_during_thumbnail_is_not_announced(self, store: UploadSessionStore) -> None:
        relay = PushRelay(store, MessageQueue(), BroadcastHub())
        session_id = await _upload(relay, "p.png", b"png")

        async def remove_while_rendering(path: str, size: int) -> None:
            await relay.remove_file(session_id)

        thumbnailer = Mock(spec=IThumbnailGenerator)
        thumbnailer.generate = AsyncMock(side_effect=remove_while_rendering)
        relay = PushRelay(store, relay.queue, relay.hub, thumbnailer=thumbnailer)
        subscriber = relay.open_subscription(RecordingChannel())

        with pytest.raises(NotFound):
            await relay.finish_upload(session_id)

        assert relay.board_snapshot() == []
        assert relay.queue.get_statistics()["next_sequence_id"] == 0
        assert await _received(relay, subscriber) == []

    async def test_large_files_skip_thumbnail(self, store: UploadSessionStore) -> None:
        thumbnailer = Mock(spec=IThumbnailGenerator)
        thumbnailer.generate = AsyncMock(return_value="data:")
        relay = PushRelay(store, MessageQueue(), BroadcastHub(),
                          thumbnailer=thumbnailer, thumbnail_max_size=2)
        session_id = await _upload(relay, "p.png", b"png")

        await relay.finish_upload(session_id)

        thumbnailer.generate.assert_not_called()

    async def test_evicted_file_is_removed(self, relay: PushRelay, store: UploadSessionStore) -> None:
        session_id = await _upload(relay, "a.txt", b"1")
        await relay.finish_upload(session_id)

        for content in ("b", "c", "d"):
            await relay.create_text_event(content)

        assert not store.contains(session_id)
        assert [e.payload["content"] for e in relay.board_snapshot()] == ["b", "c", "d"]


class TestRevoke:
    """Withdrawing events."""

    async def test_revoke_broadcasts_notice(self, relay: PushRelay) -> None:
        event = await relay.create_text_event("oops")
        subscriber = relay.open_subscription(RecordingChannel())

        notice = await relay.revoke_event(event.sequence_id)

        assert notice.sequence_id > event.sequence_id
        assert relay.board_snapshot() == []
        messages = await _received(relay, subscriber)
        assert messages[-1] == {"event": "revoke", "data": {"id": event.sequence_id}}

    async def test_revoke_unknown_id(self, relay: PushRelay) -> None:
        await relay.create_text_event("keep")
        subscriber = relay.open_subscription(RecordingChannel())

        with pytest.raises(NotFound):
            await relay.revoke_event(42)

        assert len(relay.board_snapshot()) == 1
        messages = await _received(relay, subscriber)
        assert [m["event"] for m in messages] == ["receive"]


class TestServeFile:
    """File delivery through the relay."""

    async def test_serve_finished_file(self, relay: PushRelay) -> None:
        session_id = await _upload(relay, "clip.mp4", b"0123456789")
        await relay.finish_upload(session_id)

        stream = await relay.serve_file(session_id, "bytes=2-5")
        chunks = [chunk async for chunk in stream.iter_bytes()]

        assert stream.descriptor.status_code == 206
        assert stream.descriptor.length == 4
        assert stream.descriptor.total_size == 10
        assert b"".join(chunks) == b"2345"
        assert stream.closed is True

    async def test_unreadable_backing_file_fails_before_streaming(
        self, relay: PushRelay, store: UploadSessionStore
    ) -> None:
        session_id = await _upload(relay, "a.txt", b"abc")
        await relay.finish_upload(session_id)
        path = Path(store.storage_dir) / session_id
        path.unlink()
        path.mkdir()

        with pytest.raises(TransportFailure):
            await relay.serve_file(session_id)

    async def test_serve_unsatisfiable_range(self, relay: PushRelay) -> None:
        session_id = await _upload(relay, "clip.mp4", b"0123456789")
        await relay.finish_upload(session_id)

        with pytest.raises(Unsatisfiable):
            await relay.serve_file(session_id, "bytes=5-10")

    async def test_serve_unfinished_file(self, relay: PushRelay) -> None:
        session_id = await _upload(relay, "a.txt", b"partial")

        with pytest.raises(NotFound):
            await relay.serve_file(session_id)

    async def test_serve_removed_file(self, relay: PushRelay) -> None:
        session_id = await _upload(relay, "a.txt", b"x")
        await relay.finish_upload(session_id)

        assert await relay.remove_file(session_id) is True
        assert await relay.remove_file(session_id) is False

        with pytest.raises(NotFound):
            await relay.serve_file(session_id)
