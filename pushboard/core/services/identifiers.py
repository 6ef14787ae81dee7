"""
Session identifier generation.
"""

import re
import secrets

SESSION_ID_BYTES = 16
SESSION_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def generate_session_id() -> str:
    """Return an unguessable 32-character lowercase hex token (128 bits)."""
    return secrets.token_hex(SESSION_ID_BYTES)


def is_session_id(value: str) -> bool:
    """Check that ``value`` is shaped like a session id."""
    return bool(SESSION_ID_PATTERN.fullmatch(value))
