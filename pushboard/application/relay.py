"""
Push relay: the operation surface of the board.

The relay composes the upload session store, the message queue, the
broadcast hub and the thumbnail generator. Every operation that changes the
board mutates the queue and publishes to the hub in one synchronous step,
so subscribers observe board changes in the order they were made.
"""

from typing import Callable, List, Optional

import aiofiles.os
from loguru import logger

from ..core.domain.events import BroadcastEvent, EventKind
from ..core.exceptions import LimitExceeded, NotFound, TransportFailure
from ..core.interfaces.messaging import ISubscriberChannel
from ..core.interfaces.thumbnail import IThumbnailGenerator
from ..core.services.broadcast_hub import BroadcastHub, Subscriber
from ..core.services.message_queue import MessageQueue
from ..infrastructure.services.streaming.ranges import FileStream, RangeResponder
from ..infrastructure.services.thumbnail import NullThumbnailGenerator
from ..infrastructure.services.upload.store import UploadSessionStore

HTML_ESCAPES = str.maketrans({
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#039;",
})


def escape_html(text: str) -> str:
    """Escape the characters that are significant in HTML."""
    return text.translate(HTML_ESCAPES)


class PushRelay:
    """Board operations exposed to the HTTP and push layers."""

    def __init__(
        self,
        store: UploadSessionStore,
        queue: MessageQueue,
        hub: BroadcastHub,
        responder: Optional[RangeResponder] = None,
        thumbnailer: Optional[IThumbnailGenerator] = None,
        text_limit: int = 4096,
        thumbnail_max_size: int = 32 * 1024 * 1024,
        sanitize: Callable[[str], str] = escape_html
    ) -> None:
        self._store = store
        self._queue = queue
        self._hub = hub
        self._responder = responder or RangeResponder()
        self._thumbnailer = thumbnailer or NullThumbnailGenerator()
        self._text_limit = text_limit
        self._thumbnail_max_size = thumbnail_max_size
        self._sanitize = sanitize

    @property
    def store(self) -> UploadSessionStore:
        return self._store

    @property
    def queue(self) -> MessageQueue:
        return self._queue

    @property
    def hub(self) -> BroadcastHub:
        return self._hub

    @property
    def text_limit(self) -> int:
        return self._text_limit

    async def create_text_event(self, content: str) -> BroadcastEvent:
        """
        Post a text snippet to the board.

        Raises:
            LimitExceeded: If the text is longer than the configured limit
        """
        if len(content) > self._text_limit:
            raise LimitExceeded(
                f"Text length cannot exceed {self._text_limit} characters", self._text_limit)

        sanitized = self._sanitize(content)
        return await self._announce(lambda seq: BroadcastEvent.text(seq, sanitized))

    async def create_upload_session(self, name: str) -> str:
        """Open an upload session for a file called ``name``."""
        return await self._store.create(name)

    async def append_chunk(self, session_id: str, data: bytes) -> int:
        """Append one chunk to an open upload."""
        return await self._store.append_chunk(session_id, data)

    async def finish_upload(self, session_id: str) -> BroadcastEvent:
        """
        Finish an upload and announce the file on the board.

        Raises:
            UnknownSession: If the session is absent or already finished
            NotFound: If the file was removed while its preview was made
        """
        info = await self._store.finish(session_id)
        thumbnail = await self._make_thumbnail(info.storage_path, info.size_bytes)

        if not await self._store.is_live_and_unexpired(session_id):
            raise NotFound(f"File {session_id} was removed before it was announced")

        return await self._announce(lambda seq: BroadcastEvent.file(
            seq,
            name=info.display_name,
            size=info.size_bytes,
            cache=info.session_id,
            expire=int(info.expires_at or 0),
            thumbnail=thumbnail,
        ))

    async def revoke_event(self, sequence_id: int) -> BroadcastEvent:
        """
        Withdraw a live event and tell every subscriber.

        Raises:
            NotFound: If no live event has that id
        """
        if not self._queue.revoke(sequence_id):
            raise NotFound(f"No live message with id {sequence_id}")

        notice = BroadcastEvent.revoke(self._queue.next_sequence_id(), sequence_id)
        self._hub.publish(notice.serialize())
        return notice

    async def remove_file(self, session_id: str) -> bool:
        """Delete a file and its session; idempotent. Returns whether it existed."""
        return await self._store.remove(session_id)

    async def serve_file(self, session_id: str, range_header: Optional[str] = None) -> FileStream:
        """
        Open a finished file for streaming.

        The file is opened and positioned before returning, so open errors
        surface here rather than after the response status is sent.

        Raises:
            NotFound: If the file is absent, unfinished, expired or its bytes are gone
            Unsatisfiable: If a media range request falls outside the file
            TransportFailure: If the file cannot be inspected or opened
        """
        session = await self._store.get(session_id)
        if not await self._store.is_live_and_unexpired(session_id):
            raise NotFound(f"File {session_id} not found")

        info = session.get_info()
        try:
            size = await self._file_size(info.storage_path)
        except FileNotFoundError:
            raise NotFound(f"File {session_id} not found")
        except OSError as e:
            raise TransportFailure(f"Cannot read {info.display_name}: {e}") from e

        descriptor = self._responder.describe(info.storage_path, info.display_name, size, range_header)
        return await descriptor.open()

    def board_snapshot(self) -> List[BroadcastEvent]:
        """Live events in board order."""
        return list(self._queue.snapshot())

    def open_subscription(self, channel: ISubscriberChannel) -> Subscriber:
        """
        Subscribe a connection and queue the current board for it first.

        Snapshot and registration happen without suspending, so the new
        subscriber sees every event exactly once.
        """
        backlog = [event.serialize() for event in self._queue.snapshot()]
        return self._hub.subscribe(channel, backlog=backlog)

    def close_subscription(self, subscriber: Subscriber) -> None:
        self._hub.unsubscribe(subscriber)

    async def _announce(self, build: Callable[[int], BroadcastEvent]) -> BroadcastEvent:
        event, evicted = self._queue.enqueue_new(build)
        self._hub.publish(event.serialize())

        for old in evicted:
            if old.kind == EventKind.FILE and old.session_id:
                await self._store.remove(old.session_id)

        return event

    async def _make_thumbnail(self, path: str, size: int) -> Optional[str]:
        if size > self._thumbnail_max_size:
            return None
        try:
            return await self._thumbnailer.generate(path, size)
        except Exception as e:
            logger.warning(f"Thumbnail generation failed for {path}: {e}")
            return None

    @staticmethod
    async def _file_size(path: str) -> int:
        stat = await aiofiles.os.stat(path)
        return stat.st_size
