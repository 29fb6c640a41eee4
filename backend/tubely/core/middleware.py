"""
Request body size limiting for upload endpoints.

UploadSizeLimitMiddleware is a pure ASGI middleware so it sees the request
before FastAPI parses the multipart body:

- A declared Content-Length above the endpoint's ceiling is answered with
  413 straight away, without reading the body.
- Otherwise the receive channel is wrapped and the streamed bytes are
  counted; once the ceiling is crossed an HTTP 413 is raised from inside
  body parsing, so the route handler never runs.
"""

import logging
import re

from collections.abc import Callable, Iterable
from typing import Any

from fastapi import HTTPException
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tubely.core.exceptions import PayloadTooLarge


logger = logging.getLogger(__name__)


class UploadSizeLimitMiddleware:
    """
    Enforce per-path request body ceilings.

    Args:
        app: The wrapped ASGI application
        limits: (path regex, max bytes) pairs; the first matching pattern wins.
            max bytes may be a callable, read again on every request

    Example:
        ```python
        app.add_middleware(
            UploadSizeLimitMiddleware,
            limits=[(r"^/api/v1/videos/[^/]+/video$", 1 << 30)],
        )
        ```
    """

    def __init__(
        self, app: ASGIApp, limits: Iterable[tuple[str, int | Callable[[], int]]]
    ) -> None:
        self.app = app
        self.limits = [(re.compile(pattern), max_bytes) for pattern, max_bytes in limits]

    def _limit_for(self, path: str) -> int | None:
        for pattern, max_bytes in self.limits:
            if pattern.match(path):
                return max_bytes() if callable(max_bytes) else max_bytes
        return None

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        max_bytes = self._limit_for(scope["path"])
        if max_bytes is None:
            await self.app(scope, receive, send)
            return

        declared = _declared_content_length(scope)
        if declared is not None and declared > max_bytes:
            logger.warning(
                "Rejected upload by declared size",
                extra={"path": scope["path"], "content_length": declared, "limit": max_bytes},
            )
            error = PayloadTooLarge(f"Request body exceeds {max_bytes} bytes")
            response = JSONResponse(status_code=error.status_code, content=error.to_dict())
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > max_bytes:
                    logger.warning(
                        "Rejected upload while streaming",
                        extra={"path": scope["path"], "limit": max_bytes},
                    )
                    error = PayloadTooLarge(f"Request body exceeds {max_bytes} bytes")
                    raise HTTPException(status_code=error.status_code, detail=error.to_dict())
            return message

        await self.app(scope, limited_receive, send)


def _declared_content_length(scope: Scope) -> int | None:
    headers: list[tuple[bytes, Any]] = scope.get("headers", [])
    for name, value in headers:
        if name == b"content-length":
            try:
                return int(value)
            except ValueError:
                return None
    return None
