"""Request size limiting middleware."""

import json
import logging
from collections.abc import Callable

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Room for multipart boundaries and form headers around the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def _too_large(max_size_mb: int) -> Response:
    return Response(
        content=json.dumps(
            {
                "success": False,
                "data": None,
                "message": f"File size exceeds {max_size_mb}MB limit",
                "errors": [],
            }
        ),
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        media_type="application/json",
    )


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Middleware to limit request body size.

    The limit is the configured maximum upload size plus a small multipart
    overhead. Both the Content-Length header and the actual body size are
    checked, so a missing or falsified header cannot bypass the limit.
    """

    def __init__(self, app, max_size_mb: int = 5):
        """
        Args:
            app: FastAPI application
            max_size_mb: Maximum upload size in megabytes
        """
        super().__init__(app)
        self.max_size_mb = max_size_mb
        self.max_size_bytes = max_size_mb * 1024 * 1024 + MULTIPART_OVERHEAD_BYTES

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                size = None
            if size is not None and size > self.max_size_bytes:
                logger.warning(
                    f"Request size {size} bytes (from header) exceeds limit "
                    f"{self.max_size_bytes} bytes",
                    extra={"path": request.url.path},
                )
                return _too_large(self.max_size_mb)

        if request.method in ("POST", "PUT", "PATCH"):
            # Reading consumes the stream; it is replayed for downstream handlers
            body = await request.body()
            if len(body) > self.max_size_bytes:
                logger.warning(
                    f"Request size {len(body)} bytes (actual) exceeds limit "
                    f"{self.max_size_bytes} bytes",
                    extra={"path": request.url.path},
                )
                return _too_large(self.max_size_mb)

            async def receive():
                return {"type": "http.request", "body": body, "more_body": False}

            request._receive = receive

        return await call_next(request)
