"""
Presentation layer containing the HTTP API and the push WebSocket.
"""

from .api.app import create_app

__all__ = [
    "create_app",
]
