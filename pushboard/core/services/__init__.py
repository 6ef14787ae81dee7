"""
In-memory board services: id generation, the ordered message queue and
the broadcast hub.
"""

from .broadcast_hub import BroadcastHub, Subscriber
from .identifiers import generate_session_id, is_session_id
from .message_queue import MessageQueue

__all__ = [
    "BroadcastHub",
    "Subscriber",
    "MessageQueue",
    "generate_session_id",
    "is_session_id",
]
