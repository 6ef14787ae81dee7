"""
Chunked upload endpoints.

A client opens a session with the file name, posts the file as a sequence
of raw chunks, then finishes the session to announce it on the board.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from ....application.relay import PushRelay
from ....core.exceptions import UnknownSession
from ....core.services.identifiers import is_session_id
from ..dependencies import get_relay
from ..middleware import envelope

router = APIRouter()


def upload_id(uuid: str) -> str:
    """Path dependency rejecting ids that are not 32 lowercase hex chars."""
    if not is_session_id(uuid):
        raise UnknownSession(f"Invalid upload session: {uuid}")
    return uuid


@router.post("/upload")
async def create_upload(request: Request, relay: PushRelay = Depends(get_relay)) -> JSONResponse:
    """Open an upload session; the body is the file name."""
    body = await request.body()
    name = body.decode("utf-8", errors="replace").strip() or "untitled"
    session_id = await relay.create_upload_session(name)
    return envelope(data={"uuid": session_id})


@router.post("/upload/chunk/{uuid}")
async def upload_chunk(
    request: Request,
    session_id: str = Depends(upload_id),
    relay: PushRelay = Depends(get_relay)
) -> JSONResponse:
    """Append the raw request body to the upload."""
    data = await request.body()
    size = await relay.append_chunk(session_id, data)
    return envelope(data={"size": size})


@router.post("/upload/finish/{uuid}")
async def finish_upload(
    session_id: str = Depends(upload_id),
    relay: PushRelay = Depends(get_relay)
) -> JSONResponse:
    """Finish the upload and announce the file."""
    event = await relay.finish_upload(session_id)
    return envelope(data={"id": event.sequence_id})
