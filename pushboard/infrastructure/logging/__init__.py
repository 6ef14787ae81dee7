"""
Logging infrastructure for the application.
"""

from .setup import setup_logging, LoggingManager

__all__ = [
    "setup_logging",
    "LoggingManager",
]
