"""
Upload session implementation.

A session owns one backing file. Appends are sequential by contract: the
connection that uploads a file issues its chunks one after another, so the
session itself takes no lock around the file write.
"""

import os
import time
from typing import Callable

import aiofiles
import aiofiles.os
from loguru import logger

from ....core.exceptions import UnknownSession
from ....core.interfaces.upload import IUploadSession, UploadInfo, UploadState


class UploadSession(IUploadSession):
    """Upload session backed by a single file on disk."""

    def __init__(self, upload_info: UploadInfo, clock: Callable[[], float] = time.time) -> None:
        self._info = upload_info
        self._clock = clock

    @property
    def session_id(self) -> str:
        return self._info.session_id

    @property
    def storage_path(self) -> str:
        return self._info.storage_path

    @property
    def size_bytes(self) -> int:
        return self._info.size_bytes

    @property
    def state(self) -> UploadState:
        """Effective state, reporting EXPIRED once the retention window passed."""
        return self._info.state_at(self._clock())

    async def allocate(self) -> None:
        async with aiofiles.open(self._info.storage_path, 'wb'):
            pass
        logger.debug(f"Allocated backing store {self._info.storage_path}")

    async def append(self, data: bytes) -> int:
        if self._info.state != UploadState.RECEIVING:
            raise UnknownSession(
                f"Upload {self._info.session_id} is not receiving chunks")

        if data:
            # Never create the file here; a discarded session must stay gone.
            try:
                async with aiofiles.open(self._info.storage_path, 'r+b') as f:
                    await f.seek(0, os.SEEK_END)
                    await f.write(data)
            except FileNotFoundError:
                raise UnknownSession(
                    f"Upload {self._info.session_id} was removed")

            if self._info.state == UploadState.REMOVED:
                raise UnknownSession(
                    f"Upload {self._info.session_id} was removed")

        self._info.size_bytes += len(data)
        self._info.updated_at = self._clock()
        return self._info.size_bytes

    def finish(self, expires_at: float) -> None:
        if self._info.state != UploadState.RECEIVING:
            raise UnknownSession(
                f"Upload {self._info.session_id} is already finished")

        now = self._clock()
        self._info.state = UploadState.FINISHED
        self._info.expires_at = expires_at
        self._info.updated_at = now

    async def discard(self) -> None:
        self._info.state = UploadState.REMOVED
        self._info.updated_at = self._clock()
        try:
            await aiofiles.os.remove(self._info.storage_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Failed to delete backing store {self._info.storage_path}: {e}")

    async def bytes_exist(self) -> bool:
        """Check that the backing file is still on the medium."""
        return bool(await aiofiles.os.path.exists(self._info.storage_path))

    def get_info(self) -> UploadInfo:
        return self._info

    def idle_for(self) -> float:
        """Seconds since the last append or state change."""
        return self._clock() - self._info.updated_at

    def __repr__(self) -> str:
        return (f"UploadSession(id={self._info.session_id!r}, "
                f"name={os.path.basename(self._info.display_name)!r}, "
                f"state={self._info.state.value}, size={self._info.size_bytes})")
