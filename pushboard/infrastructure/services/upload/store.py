"""
Upload session store implementation.

The store is the registry of upload sessions keyed by their hex token. It
owns every session's lifecycle: creation with an empty backing file,
sequential chunk appends, finish, and removal. Expiry is evaluated when a
session is looked up; a background sweeper additionally reclaims expired
and abandoned sessions while the store is running.
"""

import asyncio
import os
import tempfile
import time
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from ....core.exceptions import AllocationError, LimitExceeded, NotFound, TransportFailure, UnknownSession
from ....core.interfaces.upload import IUploadSessionStore, UploadInfo, UploadState
from ....core.services.identifiers import generate_session_id
from .session import UploadSession


class UploadSessionStore(IUploadSessionStore):
    """
    Registry of upload sessions.

    The identifier map is guarded by one asyncio lock. The lock only covers
    the in-memory map; file I/O always happens outside of it.
    """

    def __init__(
        self,
        storage_dir: Optional[str] = None,
        retention_window: float = 3600.0,
        max_file_size: int = 0,
        stale_upload_timeout: float = 3600.0,
        sweep_interval: float = 60.0,
        id_generator: Callable[[], str] = generate_session_id,
        clock: Callable[[], float] = time.time
    ) -> None:
        """
        Initialize the store.

        Args:
            storage_dir: Directory holding the backing files
            retention_window: Seconds a finished file stays available
            max_file_size: Maximum bytes per file, 0 for unlimited
            stale_upload_timeout: Idle seconds before a receiving session is
                reaped by the sweeper, 0 to never reap
            sweep_interval: Seconds between sweeper runs
            id_generator: Source of new session ids
            clock: Time source returning unix seconds
        """
        self._storage_dir = storage_dir or os.path.join(tempfile.gettempdir(), "pushboard")
        self._retention_window = retention_window
        self._max_file_size = max_file_size
        self._stale_upload_timeout = stale_upload_timeout
        self._sweep_interval = sweep_interval
        self._id_generator = id_generator
        self._clock = clock

        self._sessions: Dict[str, UploadSession] = {}
        self._lock = asyncio.Lock()
        self._sweeper_task: Optional[asyncio.Task[None]] = None
        self._running = False

        self._stats = {
            "created": 0,
            "finished": 0,
            "removed": 0,
            "expired": 0,
            "reaped": 0,
            "bytes_received": 0,
        }

    @property
    def name(self) -> str:
        return "UploadSessionStore"

    @property
    def storage_dir(self) -> str:
        return self._storage_dir

    @property
    def retention_window(self) -> float:
        return self._retention_window

    async def start(self) -> None:
        """Create the storage directory and start the sweeper."""
        if self._running:
            return

        os.makedirs(self._storage_dir, exist_ok=True)
        self._running = True

        if self._sweep_interval > 0:
            self._sweeper_task = asyncio.create_task(self._sweeper())

        logger.info(f"Upload session store started in {self._storage_dir}")

    async def stop(self) -> None:
        """Stop the sweeper and delete every session's bytes."""
        if not self._running:
            return

        self._running = False

        if self._sweeper_task and not self._sweeper_task.done():
            self._sweeper_task.cancel()
            try:
                await self._sweeper_task
            except asyncio.CancelledError:
                pass
        self._sweeper_task = None

        for session_id in list(self._sessions):
            await self.remove(session_id)

        logger.info("Upload session store stopped")

    async def check_health(self) -> Dict[str, Any]:
        receiving = sum(1 for s in self._sessions.values() if s.state == UploadState.RECEIVING)

        return {
            "healthy": self._running,
            "status": "running" if self._running else "stopped",
            "details": {
                "storage_directory": self._storage_dir,
                "sessions_total": len(self._sessions),
                "sessions_receiving": receiving,
                "retention_window": self._retention_window,
                "statistics": dict(self._stats),
            },
        }

    async def create(self, display_name: str) -> str:
        now = self._clock()

        async with self._lock:
            session_id = self._id_generator()
            while self.contains(session_id):
                session_id = self._id_generator()

            session = UploadSession(
                UploadInfo(
                    session_id=session_id,
                    display_name=display_name,
                    storage_path=os.path.join(self._storage_dir, session_id),
                    state=UploadState.RECEIVING,
                    created_at=now,
                    updated_at=now,
                ),
                clock=self._clock,
            )
            self._sessions[session_id] = session

        try:
            await session.allocate()
        except OSError as e:
            async with self._lock:
                self._sessions.pop(session_id, None)
            logger.error(f"Failed to allocate backing store for {display_name!r}: {e}")
            raise AllocationError(f"Cannot create backing store: {e}") from e

        self._stats["created"] += 1
        logger.info(f"Created upload session: {session_id} ({display_name})")
        return session_id

    async def get(self, session_id: str) -> UploadSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFound(f"Upload {session_id} not found")

        if session.state == UploadState.EXPIRED:
            await self._expire(session_id)
            raise NotFound(f"Upload {session_id} has expired")

        return session

    def contains(self, session_id: str) -> bool:
        """Whether the id is registered, expired or not."""
        return session_id in self._sessions

    async def append_chunk(self, session_id: str, data: bytes) -> int:
        session = self._sessions.get(session_id)
        if session is None or session.state != UploadState.RECEIVING:
            raise UnknownSession(f"Invalid upload session: {session_id}")

        if self._max_file_size and session.size_bytes + len(data) > self._max_file_size:
            raise LimitExceeded(
                f"File size cannot exceed {self._max_file_size} bytes", self._max_file_size)

        try:
            size = await session.append(data)
        except OSError as e:
            logger.error(f"Failed to write chunk to {session_id}: {e}")
            raise TransportFailure(f"Failed to store chunk: {e}") from e

        self._stats["bytes_received"] += len(data)
        logger.debug(f"Appended {len(data)} bytes to {session_id} (total {size})")
        return size

    async def finish(self, session_id: str) -> UploadInfo:
        session = self._sessions.get(session_id)
        if session is None or session.state != UploadState.RECEIVING:
            raise UnknownSession(f"Invalid upload session: {session_id}")

        session.finish(self._clock() + self._retention_window)
        self._stats["finished"] += 1

        info = session.get_info()
        logger.info(f"Upload finished: {session_id} ({info.size_bytes} bytes)")
        return info

    async def remove(self, session_id: str) -> bool:
        async with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        await session.discard()
        self._stats["removed"] += 1
        logger.info(f"Removed upload session: {session_id}")
        return True

    async def is_live_and_unexpired(self, session_id: str) -> bool:
        session = self._sessions.get(session_id)
        if session is None or session.state != UploadState.FINISHED:
            return False
        return await session.bytes_exist()

    def list_sessions(self, state: Optional[UploadState] = None) -> List[UploadInfo]:
        now = self._clock()
        return [
            session.get_info() for session in self._sessions.values()
            if state is None or session.get_info().state_at(now) == state
        ]

    async def sweep(self) -> int:
        """
        Remove expired sessions and receiving sessions idle past the timeout.

        Returns:
            Number of sessions removed
        """
        expired: List[str] = []
        stale: List[str] = []

        for session_id, session in list(self._sessions.items()):
            state = session.state
            if state == UploadState.EXPIRED:
                expired.append(session_id)
            elif (state == UploadState.RECEIVING and self._stale_upload_timeout > 0 and
                    session.idle_for() > self._stale_upload_timeout):
                stale.append(session_id)

        for session_id in expired:
            await self._expire(session_id)

        for session_id in stale:
            if await self.remove(session_id):
                self._stats["reaped"] += 1
                logger.info(f"Reaped abandoned upload: {session_id}")

        return len(expired) + len(stale)

    async def _expire(self, session_id: str) -> None:
        if await self.remove(session_id):
            self._stats["expired"] += 1
            logger.info(f"Upload expired: {session_id}")

    async def _sweeper(self) -> None:
        while self._running:
            await asyncio.sleep(self._sweep_interval)
            try:
                cleaned = await self.sweep()
                if cleaned:
                    logger.info(f"Sweeper cleaned up {cleaned} upload sessions")
            except Exception as e:
                logger.error(f"Upload sweeper error: {e}")
