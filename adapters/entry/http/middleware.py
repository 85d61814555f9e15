from __future__ import annotations

import logging

from fastapi import HTTPException
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware:
    """
    Rejects request bodies larger than `max_bytes` with HTTP 413.

    A declared Content-Length is checked before the app runs. Bodies without
    one (chunked uploads) are counted as they stream in; the route's body
    parsing fails with 413 once the count passes the limit.

    Producers are expected to chunk bulk payloads themselves.
    """

    def __init__(self, app: ASGIApp, *, max_bytes: int) -> None:
        self.app = app
        self._max_bytes = int(max_bytes)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        length = headers.get(b"content-length")
        if length is not None:
            try:
                size = int(length)
            except ValueError:
                response = JSONResponse(status_code=400, content={"error": "invalid Content-Length header"})
                await response(scope, receive, send)
                return
            if size > self._max_bytes:
                self._log_rejected(scope, size)
                response = JSONResponse(status_code=413, content={"error": self._too_large(size)})
                await response(scope, receive, send)
                return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self._max_bytes:
                    self._log_rejected(scope, received)
                    raise HTTPException(status_code=413, detail=self._too_large(received))
            return message

        await self.app(scope, limited_receive, send)

    def _too_large(self, size: int) -> str:
        return f"request body too large: {size} > {self._max_bytes} bytes"

    def _log_rejected(self, scope: Scope, size: int) -> None:
        logger.warning("Rejected %s %s: body %s bytes > %s", scope.get("method"), scope.get("path"), size, self._max_bytes)
