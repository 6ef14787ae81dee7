"""
Range-serving responder.

Computes how a stored file is delivered for an optional HTTP Range header.
Only audio and video files get byte-range handling; everything else is
always served whole. For those media files a Range header that is malformed
or reaches past the end of the file is answered with 416, never with the
whole file.
"""

import mimetypes
import os
import re
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, Optional, Tuple
from urllib.parse import quote

import aiofiles

from ....core.exceptions import TransportFailure, Unsatisfiable

MEDIA_EXTENSIONS = frozenset({
    ".mp3", ".mp4", ".flv", ".webm", ".ogv", ".mpg",
    ".wav", ".ogg", ".opus", ".m4a",
})
RANGE_PATTERN = re.compile(r"^bytes=(\d+)-(\d*)$")
DEFAULT_CHUNK_SIZE = 64 * 1024


def supports_ranges(filename: str) -> bool:
    """Whether ``filename`` is a media type served with byte ranges."""
    return os.path.splitext(filename)[1].lower() in MEDIA_EXTENSIONS


def parse_range(range_header: str, size: int) -> Tuple[int, int]:
    """
    Parse a single ``bytes=<start>-<end>`` range against a file size.

    An omitted end defaults to ``size - 1``.

    Returns:
        Inclusive (start, end) offsets

    Raises:
        Unsatisfiable: If the header is malformed or the range is not
            fully within ``[0, size - 1]``
    """
    match = RANGE_PATTERN.match(range_header.strip())
    if not match:
        raise Unsatisfiable(size, range_header)

    start = int(match.group(1))
    end = int(match.group(2)) if match.group(2) else size - 1

    if start > end or end > size - 1:
        raise Unsatisfiable(size, range_header)

    return start, end


def content_disposition(filename: str, disposition: str = "inline") -> str:
    """Build a Content-Disposition value that survives non-ASCII names."""
    quoted = quote(filename)
    if quoted != filename:
        return f"{disposition}; filename*=utf-8''{quoted}"
    return f'{disposition}; filename="{filename}"'


@dataclass(frozen=True)
class StreamDescriptor:
    """What to send for one file request."""
    path: str
    filename: str
    status_code: int
    start: int
    length: int
    total_size: int
    media_type: str
    headers: Dict[str, str] = field(default_factory=dict)
    chunk_size: int = DEFAULT_CHUNK_SIZE

    async def open(self) -> 'FileStream':
        """
        Open the backing file and seek to ``start``.

        Called before any response byte is sent, so a failure here can
        still be reported with an error status.

        Raises:
            TransportFailure: If the file cannot be opened or positioned
        """
        try:
            handle = await aiofiles.open(self.path, 'rb')
        except OSError as e:
            raise TransportFailure(f"Failed to open {self.filename}: {e}") from e

        stream = FileStream(self, handle)
        try:
            await handle.seek(self.start)
        except OSError as e:
            await stream.aclose()
            raise TransportFailure(f"Failed to seek in {self.filename}: {e}") from e
        return stream


class FileStream:
    """An opened file positioned at the start of its byte window."""

    def __init__(self, descriptor: StreamDescriptor, handle: Any) -> None:
        self.descriptor = descriptor
        self._handle = handle
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """
        Yield exactly ``length`` bytes, closing the file when done.

        Raises:
            TransportFailure: If the file cannot be read to the end of the window
        """
        descriptor = self.descriptor
        remaining = descriptor.length
        try:
            while remaining > 0:
                try:
                    data = await self._handle.read(min(descriptor.chunk_size, remaining))
                except OSError as e:
                    raise TransportFailure(f"Failed to read {descriptor.filename}: {e}") from e
                if not data:
                    raise TransportFailure(
                        f"Unexpected end of file after {descriptor.length - remaining} bytes")
                remaining -= len(data)
                yield data
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._handle.close()


class RangeResponder:
    """Builds stream descriptors for stored files."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    def describe(
        self,
        path: str,
        filename: str,
        size: int,
        range_header: Optional[str] = None
    ) -> StreamDescriptor:
        """
        Decide status, headers and byte window for a file request.

        Args:
            path: Backing file path
            filename: Display name, used for media type and disposition
            size: Current file size in bytes
            range_header: Raw Range header value, if any

        Raises:
            Unsatisfiable: For media files whose Range header is malformed
                or outside the file
        """
        media_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        headers = {"Content-Disposition": content_disposition(filename)}

        if not supports_ranges(filename):
            return self._whole(path, filename, size, media_type, headers)

        headers["Accept-Ranges"] = "bytes"

        if range_header is None:
            return self._whole(path, filename, size, media_type, headers)

        start, end = parse_range(range_header, size)
        length = end - start + 1
        headers["Content-Range"] = f"bytes {start}-{end}/{size}"
        headers["Content-Length"] = str(length)

        return StreamDescriptor(
            path=path,
            filename=filename,
            status_code=206,
            start=start,
            length=length,
            total_size=size,
            media_type=media_type,
            headers=headers,
            chunk_size=self._chunk_size,
        )

    def _whole(self, path: str, filename: str, size: int,
               media_type: str, headers: Dict[str, str]) -> StreamDescriptor:
        headers["Content-Length"] = str(size)
        return StreamDescriptor(
            path=path,
            filename=filename,
            status_code=200,
            start=0,
            length=size,
            total_size=size,
            media_type=media_type,
            headers=headers,
            chunk_size=self._chunk_size,
        )
