"""
Thumbnail generator interface.
"""

from abc import ABC, abstractmethod
from typing import Optional


class IThumbnailGenerator(ABC):
    """Best-effort preview generator for finished files."""

    @abstractmethod
    async def generate(self, path: str, size: int) -> Optional[str]:
        """
        Produce a small encoded preview of a file.

        Args:
            path: Backing file path
            size: File size in bytes

        Returns:
            A data URL, or None when no preview applies
        """
        pass
