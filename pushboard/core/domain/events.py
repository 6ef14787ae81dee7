"""
Broadcast event domain model.

A broadcast event is one entry of the shared board (a text snippet or a
finished file) or the removal of such an entry. Events are immutable once
created; the sequence id is assigned by the message queue.
"""

import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class EventKind(Enum):
    """Kinds of broadcast events."""
    TEXT = "text"
    FILE = "file"
    REVOKE = "revoke"


@dataclass(frozen=True)
class BroadcastEvent:
    """
    Immutable board event.

    For TEXT the payload holds ``content``. For FILE it holds ``name``,
    ``size``, ``cache`` (the upload session id), ``expire`` (unix seconds)
    and optionally ``thumbnail``. For REVOKE it holds ``id``, the sequence
    id of the event being withdrawn.
    """

    sequence_id: int
    """Process-wide unique, strictly increasing id."""

    kind: EventKind
    """What the event announces."""

    payload: Dict[str, Any] = field(default_factory=dict)
    """Kind-specific fields."""

    timestamp: float = field(default_factory=time.time)
    """Unix timestamp when the event was created."""

    def __post_init__(self) -> None:
        if self.sequence_id < 0:
            raise ValueError("Sequence id cannot be negative")
        if not isinstance(self.kind, EventKind):
            raise ValueError("Kind must be an EventKind enum value")
        if self.kind == EventKind.REVOKE and "id" not in self.payload:
            raise ValueError("Revoke events must name the revoked sequence id")

    @classmethod
    def text(cls, sequence_id: int, content: str) -> 'BroadcastEvent':
        """Create a text announcement."""
        return cls(sequence_id, EventKind.TEXT, {"content": content})

    @classmethod
    def file(
        cls,
        sequence_id: int,
        name: str,
        size: int,
        cache: str,
        expire: int,
        thumbnail: Any = None
    ) -> 'BroadcastEvent':
        """Create a finished-file announcement."""
        payload: Dict[str, Any] = {
            "name": name,
            "size": size,
            "cache": cache,
            "expire": expire,
        }
        if thumbnail:
            payload["thumbnail"] = thumbnail
        return cls(sequence_id, EventKind.FILE, payload)

    @classmethod
    def revoke(cls, sequence_id: int, revoked_id: int) -> 'BroadcastEvent':
        """Create the removal notice for ``revoked_id``."""
        return cls(sequence_id, EventKind.REVOKE, {"id": revoked_id})

    @property
    def session_id(self) -> Any:
        """Upload session behind a FILE event, None otherwise."""
        if self.kind != EventKind.FILE:
            return None
        return self.payload.get("cache")

    def to_message(self) -> Dict[str, Any]:
        """Build the wire message pushed to subscribers."""
        if self.kind == EventKind.REVOKE:
            return {"event": "revoke", "data": {"id": self.payload["id"]}}

        return {
            "event": "receive",
            "data": {
                "id": self.sequence_id,
                "type": self.kind.value,
                **self.payload,
            },
        }

    def serialize(self) -> str:
        """Serialize the wire message to JSON text."""
        return json.dumps(self.to_message(), ensure_ascii=False)
