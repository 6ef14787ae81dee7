"""
Tests for range-aware file streaming.
"""

from pathlib import Path
from typing import List

import pytest

from pushboard.core.exceptions import TransportFailure, Unsatisfiable
from pushboard.infrastructure.services.streaming.ranges import (
    RangeResponder,
    StreamDescriptor,
    content_disposition,
    parse_range,
    supports_ranges,
)

PAYLOAD = bytes(range(256)) * 4  # 1024 bytes


@pytest.fixture
def media_file(tmp_path: Path) -> Path:
    path = tmp_path / "clip"
    path.write_bytes(PAYLOAD[:1000])
    return path


async def _collect(descriptor: StreamDescriptor) -> bytes:
    stream = await descriptor.open()
    chunks: List[bytes] = []
    async for chunk in stream.iter_bytes():
        chunks.append(chunk)
    return b"".join(chunks)


class TestParseRange:
    """Range header parsing."""

    def test_explicit_range(self) -> None:
        assert parse_range("bytes=0-99", 1000) == (0, 99)

    def test_open_ended_range(self) -> None:
        assert parse_range("bytes=900-", 1000) == (900, 999)

    def test_last_byte(self) -> None:
        assert parse_range("bytes=999-999", 1000) == (999, 999)

    @pytest.mark.parametrize("header", [
        "bytes=900-1099",
        "bytes=1000-",
        "bytes=50-10",
        "bytes=-100",
        "bytes=0-10,20-30",
        "items=0-10",
        "garbage",
    ])
    def test_unsatisfiable(self, header: str) -> None:
        with pytest.raises(Unsatisfiable) as exc_info:
            parse_range(header, 1000)

        assert exc_info.value.size == 1000
        assert exc_info.value.status_code == 416


class TestHelpers:
    """Media detection and disposition."""

    @pytest.mark.parametrize("name", ["song.MP3", "a.mp4", "x.webm", "v.opus", "clip.m4a"])
    def test_media_files_support_ranges(self, name: str) -> None:
        assert supports_ranges(name)

    @pytest.mark.parametrize("name", ["doc.pdf", "image.png", "noext"])
    def test_other_files_do_not(self, name: str) -> None:
        assert not supports_ranges(name)

    def test_ascii_disposition(self) -> None:
        assert content_disposition("a.txt") == 'inline; filename="a.txt"'

    def test_unicode_disposition(self) -> None:
        value = content_disposition("笔记.txt")

        assert value.startswith("inline; filename*=utf-8''")
        assert "笔记" not in value


class TestRangeResponder:
    """Descriptor construction and streaming."""

    def setup_method(self) -> None:
        self.responder = RangeResponder(chunk_size=64)

    async def test_range_returns_partial_content(self, media_file: Path) -> None:
        descriptor = self.responder.describe(str(media_file), "clip.mp4", 1000, "bytes=0-99")

        assert descriptor.status_code == 206
        assert descriptor.headers["Content-Range"] == "bytes 0-99/1000"
        assert descriptor.headers["Content-Length"] == "100"
        assert descriptor.headers["Accept-Ranges"] == "bytes"
        assert await _collect(descriptor) == PAYLOAD[:100]

    async def test_middle_range(self, media_file: Path) -> None:
        descriptor = self.responder.describe(str(media_file), "clip.mp3", 1000, "bytes=500-")

        assert descriptor.length == 500
        assert await _collect(descriptor) == PAYLOAD[500:1000]

    def test_range_past_end_is_unsatisfiable(self, media_file: Path) -> None:
        with pytest.raises(Unsatisfiable):
            self.responder.describe(str(media_file), "clip.mp4", 1000, "bytes=900-1099")

    def test_malformed_range_is_unsatisfiable(self, media_file: Path) -> None:
        with pytest.raises(Unsatisfiable):
            self.responder.describe(str(media_file), "clip.mp4", 1000, "bytes=abc")

    async def test_media_without_range_is_whole(self, media_file: Path) -> None:
        descriptor = self.responder.describe(str(media_file), "clip.mp4", 1000)

        assert descriptor.status_code == 200
        assert descriptor.headers["Accept-Ranges"] == "bytes"
        assert descriptor.headers["Content-Length"] == "1000"
        assert "Content-Range" not in descriptor.headers
        assert await _collect(descriptor) == PAYLOAD[:1000]

    async def test_non_media_ignores_range(self, media_file: Path) -> None:
        descriptor = self.responder.describe(str(media_file), "notes.txt", 1000, "bytes=900-1099")

        assert descriptor.status_code == 200
        assert "Accept-Ranges" not in descriptor.headers
        assert descriptor.media_type == "text/plain"
        assert await _collect(descriptor) == PAYLOAD[:1000]

    def test_disposition_uses_display_name(self, media_file: Path) -> None:
        descriptor = self.responder.describe(str(media_file), "report.pdf", 1000)

        assert descriptor.headers["Content-Disposition"] == 'inline; filename="report.pdf"'

    async def test_truncated_file_fails(self, media_file: Path) -> None:
        descriptor = self.responder.describe(str(media_file), "clip.mp4", 2000)

        with pytest.raises(TransportFailure):
            await _collect(descriptor)

    async def test_missing_file_fails_on_open(self, tmp_path: Path) -> None:
        descriptor = self.responder.describe(str(tmp_path / "gone"), "gone.bin", 10)

        with pytest.raises(TransportFailure):
            await descriptor.open()

    async def test_directory_fails_on_open(self, tmp_path: Path) -> None:
        descriptor = self.responder.describe(str(tmp_path), "folder.bin", 4096)

        with pytest.raises(TransportFailure):
            await descriptor.open()

    async def test_stream_closes_file_after_iteration(self, media_file: Path) -> None:
        stream = await self.responder.describe(str(media_file), "clip.mp4", 1000, "bytes=10-19").open()

        chunks = [chunk async for chunk in stream.iter_bytes()]

        assert b"".join(chunks) == PAYLOAD[10:20]
        assert stream.closed is True
        await stream.aclose()
