"""
Core interfaces defining the contracts for the board components.
"""

from .lifecycle import IStartable, IStoppable, IHealthCheckable, IComponent
from .messaging import IMessageQueue, IBroadcastHub, ISubscriberChannel
from .upload import IUploadSession, IUploadSessionStore, UploadInfo, UploadState
from .thumbnail import IThumbnailGenerator

__all__ = [
    "IStartable",
    "IStoppable",
    "IHealthCheckable",
    "IComponent",
    "IMessageQueue",
    "IBroadcastHub",
    "ISubscriberChannel",
    "IUploadSession",
    "IUploadSessionStore",
    "UploadInfo",
    "UploadState",
    "IThumbnailGenerator",
]
