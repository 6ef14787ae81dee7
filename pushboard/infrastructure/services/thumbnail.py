"""
Thumbnail generators.

Finished image uploads are announced with a small JPEG preview embedded as
a data URL. Decoding runs in the default executor so a large image does not
stall the event loop.
"""

import asyncio
import base64
import io
from typing import Optional

from loguru import logger
from PIL import Image, UnidentifiedImageError

from ...core.interfaces.thumbnail import IThumbnailGenerator

THUMBNAIL_SHORT_SIDE = 64
THUMBNAIL_QUALITY = 70


class NullThumbnailGenerator(IThumbnailGenerator):
    """Generator that never produces a preview."""

    async def generate(self, path: str, size: int) -> Optional[str]:
        return None


class PillowThumbnailGenerator(IThumbnailGenerator):
    """
    Pillow-backed preview generator.

    Images whose short side exceeds ``short_side`` are scaled down so the
    short side matches it; smaller images keep their size. Files Pillow
    cannot decode yield no preview.
    """

    def __init__(self, short_side: int = THUMBNAIL_SHORT_SIDE, quality: int = THUMBNAIL_QUALITY) -> None:
        self._short_side = short_side
        self._quality = quality

    async def generate(self, path: str, size: int) -> Optional[str]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._render, path)

    def _render(self, path: str) -> Optional[str]:
        try:
            with Image.open(path) as image:
                image.load()
                preview = self._scale(image).convert("RGB")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            logger.debug(f"No thumbnail for {path}: {e}")
            return None

        buffer = io.BytesIO()
        preview.save(buffer, format="JPEG", quality=self._quality, optimize=True)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:image/jpeg;base64,{encoded}"

    def _scale(self, image: Image.Image) -> Image.Image:
        width, height = image.size
        short = min(width, height)
        if short <= self._short_side:
            return image

        ratio = self._short_side / short
        target = (max(1, round(width * ratio)), max(1, round(height * ratio)))
        return image.resize(target, Image.Resampling.LANCZOS)
