"""
Upload services: the session store and individual upload sessions.
"""

from .session import UploadSession
from .store import UploadSessionStore

__all__ = [
    "UploadSession",
    "UploadSessionStore",
]
