"""
Upload session interfaces.

An upload session accumulates the bytes of one file. Sessions move from
RECEIVING to FINISHED, are logically EXPIRED once their retention window
has passed, and end REMOVED when their backing bytes are deleted.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .lifecycle import IComponent


class UploadState(Enum):
    """Upload session state enumeration."""
    RECEIVING = "receiving"
    FINISHED = "finished"
    EXPIRED = "expired"
    REMOVED = "removed"


@dataclass
class UploadInfo:
    """Upload session information."""
    session_id: str
    display_name: str
    storage_path: str
    state: UploadState
    created_at: float
    updated_at: float
    size_bytes: int = 0
    expires_at: Optional[float] = None

    def state_at(self, now: float) -> UploadState:
        """Effective state at ``now``; expiry is observed lazily."""
        if (self.state == UploadState.FINISHED and
                self.expires_at is not None and now >= self.expires_at):
            return UploadState.EXPIRED
        return self.state

    @property
    def is_receiving(self) -> bool:
        return self.state == UploadState.RECEIVING

    @property
    def is_finished(self) -> bool:
        return self.state == UploadState.FINISHED


class IUploadSession(ABC):
    """Interface for a single upload session."""

    @property
    @abstractmethod
    def session_id(self) -> str:
        """Session identifier."""
        pass

    @abstractmethod
    async def allocate(self) -> None:
        """Create the empty backing byte store."""
        pass

    @abstractmethod
    async def append(self, data: bytes) -> int:
        """Append bytes and return the new size."""
        pass

    @abstractmethod
    def finish(self, expires_at: float) -> None:
        """Freeze the size and set the expiry time."""
        pass

    @abstractmethod
    async def discard(self) -> None:
        """Delete the backing bytes."""
        pass

    @abstractmethod
    def get_info(self) -> UploadInfo:
        """Get upload session information."""
        pass


class IUploadSessionStore(IComponent):
    """
    Interface for the registry of upload sessions.

    The store owns the identifier to session mapping and every session's
    lifecycle. Expiry is a predicate evaluated on lookup.
    """

    @abstractmethod
    async def create(self, display_name: str) -> str:
        """
        Register a new RECEIVING session with an empty backing store.

        Returns:
            The new session id

        Raises:
            AllocationError: If the backing store cannot be created
        """
        pass

    @abstractmethod
    async def get(self, session_id: str) -> IUploadSession:
        """
        Look up a session, destroying it first if it has expired.

        Raises:
            NotFound: If the session is absent or expired
        """
        pass

    @abstractmethod
    async def append_chunk(self, session_id: str, data: bytes) -> int:
        """
        Append bytes to a RECEIVING session.

        Raises:
            UnknownSession: If the session is absent or not RECEIVING
            LimitExceeded: If the file would grow past the size limit
        """
        pass

    @abstractmethod
    async def finish(self, session_id: str) -> UploadInfo:
        """
        Move a session from RECEIVING to FINISHED.

        Raises:
            UnknownSession: If the session is absent or already finished
        """
        pass

    @abstractmethod
    async def remove(self, session_id: str) -> bool:
        """Remove a session; returns whether one existed. Never fails."""
        pass

    @abstractmethod
    async def is_live_and_unexpired(self, session_id: str) -> bool:
        """True if the session is FINISHED, unexpired and its bytes exist."""
        pass

    @abstractmethod
    def list_sessions(self, state: Optional[UploadState] = None) -> List[UploadInfo]:
        """List sessions with optional state filtering."""
        pass
