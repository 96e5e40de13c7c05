"""
Tests for RequestSizeLimitMiddleware.

Tests cover:
- Limit computed from the upload size plus multipart overhead
- Content-Length header validation
- Actual body size validation when no Content-Length is sent
- Body replay for downstream handlers
- Methods without a body are not read
"""

import httpx
import pytest
from fastapi import FastAPI, Request, status

from app.core.middleware import MULTIPART_OVERHEAD_BYTES, RequestSizeLimitMiddleware

ONE_MB = 1024 * 1024


def _app(max_size_mb: int = 1) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestSizeLimitMiddleware, max_size_mb=max_size_mb)

    @app.post("/echo")
    async def echo(request: Request):
        body = await request.body()
        return {"size": len(body)}

    @app.get("/ping")
    async def ping():
        return {"ok": True}

    return app


async def _client(app: FastAPI) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


class TestRequestSizeLimitMiddlewareInit:
    def test_limit_includes_multipart_overhead(self):
        middleware = RequestSizeLimitMiddleware(app=None, max_size_mb=5)

        assert middleware.max_size_mb == 5
        assert middleware.max_size_bytes == 5 * ONE_MB + MULTIPART_OVERHEAD_BYTES

    def test_default_limit_is_five_megabytes(self):
        middleware = RequestSizeLimitMiddleware(app=None)

        assert middleware.max_size_bytes == 5 * ONE_MB + MULTIPART_OVERHEAD_BYTES


class TestSizeLimit:
    @pytest.mark.anyio
    async def test_body_over_limit_returns_413(self):
        """A Content-Length above the limit is rejected before the handler runs."""
        async with await _client(_app()) as client:
            response = await client.post(
                "/echo", content=b"x" * (ONE_MB + MULTIPART_OVERHEAD_BYTES + 1)
            )

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        assert response.json() == {
            "success": False,
            "data": None,
            "message": "File size exceeds 1MB limit",
            "errors": [],
        }

    @pytest.mark.anyio
    async def test_body_within_limit_reaches_handler(self):
        async with await _client(_app()) as client:
            response = await client.post("/echo", content=b"x" * ONE_MB)

        assert response.status_code == 200
        assert response.json() == {"size": ONE_MB}

    @pytest.mark.anyio
    async def test_streamed_body_without_length_is_checked(self):
        """Chunked uploads carry no Content-Length; the actual size is measured."""

        async def chunks():
            for _ in range(3):
                yield b"x" * ONE_MB

        async with await _client(_app()) as client:
            response = await client.post("/echo", content=chunks())

        assert response.status_code == status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    @pytest.mark.anyio
    async def test_invalid_content_length_falls_back_to_body(self):
        async with await _client(_app()) as client:
            response = await client.post(
                "/echo", content=b"abc", headers={"content-length": "not-a-number"}
            )

        assert response.status_code != status.HTTP_413_REQUEST_ENTITY_TOO_LARGE

    @pytest.mark.anyio
    async def test_get_requests_pass_through(self):
        async with await _client(_app()) as client:
            response = await client.get("/ping")

        assert response.status_code == 200
        assert response.json() == {"ok": True}
