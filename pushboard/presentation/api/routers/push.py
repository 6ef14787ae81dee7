"""
Push channel endpoint.

Each WebSocket connection becomes one hub subscriber. The current board is
replayed to the new connection first, then live events follow. Inbound
messages are read only to notice the disconnect.
"""

import asyncio
import contextlib

from fastapi import APIRouter, Depends, WebSocket
from loguru import logger

from ....application.relay import PushRelay
from ....core.interfaces.messaging import ISubscriberChannel
from ..dependencies import get_relay

router = APIRouter()


class WebSocketChannel(ISubscriberChannel):
    """Adapts a WebSocket connection to the hub's channel interface."""

    def __init__(self, websocket: WebSocket) -> None:
        self._websocket = websocket

    async def send(self, message: str) -> None:
        await self._websocket.send_text(message)


@router.websocket("/push")
async def push_endpoint(websocket: WebSocket, relay: PushRelay = Depends(get_relay)) -> None:
    await websocket.accept()

    client = websocket.client.host if websocket.client else "unknown"
    subscriber = relay.open_subscription(WebSocketChannel(websocket))
    logger.info(f"Push client connected from {client}")

    delivery = asyncio.create_task(relay.hub.deliver(subscriber))
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
    finally:
        relay.close_subscription(subscriber)
        delivery.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await delivery
        logger.info(f"Push client {client} disconnected")
