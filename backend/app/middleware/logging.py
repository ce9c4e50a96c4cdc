"""
Twinshot Backend — Access Log
===============================

One line per request on the `twinshot.access` logger:

    POST /posts 201 184.3ms [3f9c0a1b2c4d] in=2411832B from 192.168.1.100

Traffic shape this is tuned for:
    - `/health` is hit by orchestrators every few seconds and is not logged.
    - `/uploads/...` serves captures and composites. A feed screen fetches
      several at once, so successful fetches log at DEBUG.
    - `POST /posts` carries two full-size captures; the request's
      Content-Length is logged as `in=` so oversized uploads stand out.
    - Everything else logs at INFO, 4xx at WARNING, 5xx at ERROR.

Request bodies, image bytes and the Authorization header are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from app.middleware.request_id import request_id_var

logger = logging.getLogger("twinshot.access")

SILENT_PATHS = {"/health"}
IMAGE_PREFIX = "/uploads/"


def access_level(path: str, status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    if path.startswith(IMAGE_PREFIX):
        return logging.DEBUG
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in SILENT_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            # Unhandled errors bypass the JSON handlers; still leave a line
            self._log(request, 500, started)
            raise

        self._log(request, response.status_code, started)
        return response

    def _log(self, request: Request, status: int, started: float) -> None:
        path = request.url.path
        level = access_level(path, status)
        if not logger.isEnabledFor(level):
            return

        duration_ms = (time.perf_counter() - started) * 1000
        rid = request_id_var.get("")
        client_ip = request.client.host if request.client else "unknown"
        size = request.headers.get("content-length")
        inbound = f" in={size}B" if size and request.method in ("POST", "PUT") else ""

        logger.log(
            level,
            "%s %s %d %.1fms [%s]%s from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            inbound,
            client_ip,
            extra={
                "request_id": rid,
                "status": status,
                "duration_ms": round(duration_ms, 2),
            },
        )
