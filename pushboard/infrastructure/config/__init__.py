"""
Configuration models and loading.
"""

from .loader import ConfigLoader
from .models import (
    ApplicationConfig, BoardConfig, FileConfig, LoggingConfig,
    SecurityConfig, ServerConfig, TextConfig
)

__all__ = [
    "ConfigLoader",
    "ApplicationConfig",
    "BoardConfig",
    "FileConfig",
    "LoggingConfig",
    "SecurityConfig",
    "ServerConfig",
    "TextConfig",
]
