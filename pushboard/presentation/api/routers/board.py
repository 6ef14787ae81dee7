"""
Board API endpoints: server discovery, text posts and revocation.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ....application.relay import PushRelay
from ....infrastructure.config.models import ApplicationConfig
from ..dependencies import get_config, get_relay
from ..middleware import envelope

router = APIRouter()


@router.get("/server")
async def server_info(
    request: Request,
    config: ApplicationConfig = Depends(get_config)
) -> JSONResponse:
    """
    Describe where to connect for pushes and the upload limits.
    """
    secure = config.server.force_wss or request.url.scheme == "https"
    host = request.headers.get("host", request.url.netloc)

    return envelope(data={
        "server": f"ws{'s' if secure else ''}://{host}{config.server.prefix}/push",
        "chunk": config.file.chunk,
        "text_limit": config.text.limit,
        "file_limit": config.file.limit,
    })


@router.post("/text")
async def post_text(request: Request, relay: PushRelay = Depends(get_relay)) -> JSONResponse:
    """Post a plain-text snippet to the board."""
    body = await request.body()
    event = await relay.create_text_event(body.decode("utf-8", errors="replace"))
    return envelope(data={"id": event.sequence_id})


@router.delete("/revoke/{sequence_id:int}")
async def revoke(sequence_id: int, relay: PushRelay = Depends(get_relay)) -> JSONResponse:
    """Withdraw a text or file announcement from the board."""
    await relay.revoke_event(sequence_id)
    return envelope()
