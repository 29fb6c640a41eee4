"""
Tests for UploadSizeLimitMiddleware.

Test classes:
- TestDeclaredLength: rejection from the Content-Length header alone
- TestStreamedLength: rejection while the body is being received
"""

from typing import Any, Dict, List

import pytest
from fastapi import FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from tubely.core.middleware import UploadSizeLimitMiddleware


LIMIT = 64


@pytest.fixture
def limited_app() -> FastAPI:
    app = FastAPI()

    @app.post("/videos/{video_id}/video")
    async def upload(request: Request) -> Dict[str, int]:
        return {"received": len(await request.body())}

    @app.post("/echo")
    async def echo(request: Request) -> Dict[str, int]:
        return {"received": len(await request.body())}

    app.add_middleware(UploadSizeLimitMiddleware, limits=[(r"^/videos/[^/]+/video$", LIMIT)])
    return app


@pytest.mark.unit
class TestDeclaredLength:
    """Requests whose Content-Length already exceeds the ceiling."""

    def test_rejects_oversized_body(self, limited_app):
        client = TestClient(limited_app)

        response = client.post("/videos/abc/video", content=b"x" * (LIMIT + 1))

        assert response.status_code == 413
        assert response.json()["error"] == "payload_too_large"

    def test_accepts_body_at_limit(self, limited_app):
        client = TestClient(limited_app)

        response = client.post("/videos/abc/video", content=b"x" * LIMIT)

        assert response.status_code == 200
        assert response.json() == {"received": LIMIT}

    def test_other_paths_are_not_limited(self, limited_app):
        client = TestClient(limited_app)

        response = client.post("/echo", content=b"x" * (LIMIT * 4))

        assert response.status_code == 200


@pytest.mark.unit
class TestStreamedLength:
    """Requests without a usable Content-Length, driven at the ASGI level."""

    @staticmethod
    def _scope(path: str) -> Dict[str, Any]:
        return {
            "type": "http",
            "method": "POST",
            "path": path,
            "headers": [(b"transfer-encoding", b"chunked")],
        }

    @staticmethod
    def _receiver(chunks: List[bytes]):
        messages = [
            {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
            for i, chunk in enumerate(chunks)
        ]

        async def receive() -> Dict[str, Any]:
            return messages.pop(0)

        return receive

    @pytest.mark.asyncio
    async def test_raises_413_once_limit_is_crossed(self):
        async def inner(scope, receive, send):
            while (await receive()).get("more_body"):
                pass

        middleware = UploadSizeLimitMiddleware(inner, limits=[(r"^/upload$", LIMIT)])
        receive = self._receiver([b"x" * 40, b"x" * 40])

        async def send(message):
            raise AssertionError("nothing should be sent")

        with pytest.raises(HTTPException) as exc_info:
            await middleware(self._scope("/upload"), receive, send)

        assert exc_info.value.status_code == 413
        assert exc_info.value.detail["error"] == "payload_too_large"

    @pytest.mark.asyncio
    async def test_passes_body_within_limit(self):
        seen: List[bytes] = []

        async def inner(scope, receive, send):
            while True:
                message = await receive()
                seen.append(message["body"])
                if not message.get("more_body"):
                    break

        middleware = UploadSizeLimitMiddleware(inner, limits=[(r"^/upload$", LIMIT)])

        async def send(message):
            pass

        await middleware(self._scope("/upload"), self._receiver([b"x" * 32, b"x" * 32]), send)

        assert b"".join(seen) == b"x" * LIMIT

    @pytest.mark.asyncio
    async def test_non_http_scope_passes_through(self):
        called = []

        async def inner(scope, receive, send):
            called.append(scope["type"])

        middleware = UploadSizeLimitMiddleware(inner, limits=[(r".*", 0)])
        await middleware({"type": "lifespan"}, None, None)

        assert called == ["lifespan"]
