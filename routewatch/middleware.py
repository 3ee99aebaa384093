"""Inbound request body size limit for the RouteWatch API.

Route definitions and test-only checks carry user-supplied headers and bodies.
Bodies above MAX_REQUEST_BODY_BYTES are refused with HTTP 413 before any route
handler parses them:

  1. Content-Length fast path: reject on the declared size, no body read.
  2. Chunked slow path: accumulate with a rolling cap; reject as soon as the
     cap is exceeded.
"""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from routewatch.constants import MAX_REQUEST_BODY_BYTES
from routewatch.utils.logger import get_logger

logger = get_logger(__name__)

_PAYLOAD_TOO_LARGE_BODY: dict = {"error": "Request body too large. Maximum size: 1MB"}

_INVALID_CONTENT_LENGTH_BODY: dict = {"error": "Invalid Content-Length header"}


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Starlette middleware enforcing the 1 MiB inbound body cap.

    Registration (in create_app() in routewatch/main.py):
        application.add_middleware(BodySizeLimitMiddleware)

      - Content-Length > MAX_REQUEST_BODY_BYTES  → HTTP 413
      - Content-Length == MAX_REQUEST_BODY_BYTES → accepted
      - Non-integer Content-Length               → HTTP 400
      - No Content-Length, streamed body > cap   → HTTP 413
    """

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        content_length_header = request.headers.get("content-length")

        if content_length_header is not None:
            try:
                declared_size = int(content_length_header)
            except ValueError:
                logger.warning(
                    "Invalid Content-Length header",
                    value=content_length_header,
                    path=request.url.path,
                )
                return JSONResponse(status_code=400, content=_INVALID_CONTENT_LENGTH_BODY)

            if declared_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (Content-Length)",
                    declared_size=declared_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)

            return await call_next(request)

        body_chunks: list[bytes] = []
        total_size: int = 0

        async for chunk in request.stream():
            total_size += len(chunk)
            if total_size > MAX_REQUEST_BODY_BYTES:
                logger.warning(
                    "Request body too large (chunked)",
                    accumulated_size=total_size,
                    limit=MAX_REQUEST_BODY_BYTES,
                    path=request.url.path,
                )
                return JSONResponse(status_code=413, content=_PAYLOAD_TOO_LARGE_BODY)
            body_chunks.append(chunk)

        # Request.body() returns the cached bytes instead of re-reading the stream
        request._body = b"".join(body_chunks)  # type: ignore[attr-defined]

        return await call_next(request)
