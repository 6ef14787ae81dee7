"""
File download and deletion endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from ....application.relay import PushRelay
from ....core.exceptions import NotFound
from ....core.services.identifiers import is_session_id
from ..dependencies import get_relay
from ..middleware import envelope

router = APIRouter()


def file_id(uuid: str) -> str:
    """Path dependency rejecting ids that are not 32 lowercase hex chars."""
    if not is_session_id(uuid):
        raise NotFound(f"File {uuid} not found")
    return uuid


@router.get("/file/{uuid}")
async def download_file(
    session_id: str = Depends(file_id),
    range_header: Optional[str] = Header(None, alias="Range"),
    relay: PushRelay = Depends(get_relay)
) -> StreamingResponse:
    """
    Stream a finished file inline.

    Audio and video files honour a single ``bytes=<start>-<end>`` range.
    """
    stream = await relay.serve_file(session_id, range_header)
    descriptor = stream.descriptor

    return StreamingResponse(
        stream.iter_bytes(),
        status_code=descriptor.status_code,
        media_type=descriptor.media_type,
        headers=descriptor.headers,
        background=BackgroundTask(stream.aclose),
    )


@router.delete("/file/{uuid}")
async def delete_file(
    session_id: str = Depends(file_id),
    relay: PushRelay = Depends(get_relay)
) -> JSONResponse:
    """Delete a file before it expires."""
    if not await relay.remove_file(session_id):
        raise NotFound(f"File {session_id} not found")
    return envelope()
