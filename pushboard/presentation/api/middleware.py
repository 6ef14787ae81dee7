"""
HTTP middleware and error handlers.

Every response uses the envelope ``{"code", "msg", "data"}``. Board errors
are mapped to their status code; anything unexpected becomes a 500.
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from ...core.exceptions import PushBoardError, Unsatisfiable


def envelope(code: int = 200, data: Optional[Dict[str, Any]] = None, msg: str = "") -> JSONResponse:
    """Build a JSON response in the board's envelope format."""
    return JSONResponse(
        status_code=code,
        content={"code": code, "msg": msg, "data": data or {}},
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Middleware for centralized handling of unexpected errors."""

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception(f"Unhandled error in {request.method} {request.url.path}: {e}")
            message = str(e) if request.app.debug else "An unexpected error occurred"
            return envelope(500, msg=message)


async def board_error_handler(request: Request, exc: PushBoardError) -> Response:
    """Translate a PushBoardError into an enveloped response."""
    if isinstance(exc, Unsatisfiable):
        return Response(
            status_code=exc.status_code,
            headers={"Content-Range": f"bytes */{exc.size}"},
        )

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

    return envelope(exc.status_code, msg=exc.message)


async def http_error_handler(request: Request, exc: HTTPException) -> Response:
    """Envelope FastAPI's own HTTP errors (404 on bad paths and the like)."""
    response = envelope(exc.status_code, msg=str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PushBoardError, board_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, http_error_handler)  # type: ignore[arg-type]
