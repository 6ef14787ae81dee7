"""
Error types for the push board.

Every failure a board operation can report is a subclass of PushBoardError.
Each carries a human-readable message, a stable error code and the HTTP
status the presentation layer answers with.
"""

from typing import Any, Dict, Optional


class PushBoardError(Exception):
    """Base class for all reportable push board failures."""

    error_code = "PUSHBOARD_ERROR"
    status_code = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the error for logging and API responses."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class UnknownSession(PushBoardError):
    """The upload session is not registered or not in the expected state."""

    error_code = "UNKNOWN_SESSION"


class AllocationError(PushBoardError):
    """Backing storage for a new upload session could not be created."""

    error_code = "ALLOCATION_ERROR"


class NotFound(PushBoardError):
    """A revoke or lookup target does not exist."""

    error_code = "NOT_FOUND"
    status_code = 404


class LimitExceeded(PushBoardError):
    """Content is larger than the configured limit."""

    error_code = "LIMIT_EXCEEDED"

    def __init__(self, message: str, limit: int) -> None:
        super().__init__(message, {"limit": limit})
        self.limit = limit


class Unsatisfiable(PushBoardError):
    """A byte-range request falls outside the file."""

    error_code = "RANGE_NOT_SATISFIABLE"
    status_code = 416

    def __init__(self, size: int, range_header: Optional[str] = None) -> None:
        super().__init__(
            f"Requested range not satisfiable for {size} bytes",
            {"size": size, "range": range_header},
        )
        self.size = size


class TransportFailure(PushBoardError):
    """Reading or writing file bytes failed."""

    error_code = "TRANSPORT_FAILURE"
    status_code = 500
