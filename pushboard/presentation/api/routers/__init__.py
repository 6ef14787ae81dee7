"""
API router modules, one per group of board endpoints.
"""

from . import board, files, health, push, uploads

__all__ = [
    "board",
    "files",
    "health",
    "push",
    "uploads",
]
