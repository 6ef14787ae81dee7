"""
Application layer containing the relay use cases, dependency injection,
and startup logic.
"""

from .container import Container, IContainer
from .relay import PushRelay
from .startup import ApplicationStartup

__all__ = [
    "Container",
    "IContainer",
    "PushRelay",
    "ApplicationStartup",
]
