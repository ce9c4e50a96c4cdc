"""
Twinshot Backend — Request Correlation IDs
============================================

Every request gets an ID that ties together its access log line, the
service log lines written while handling it, and the `request_id` field of
any error body. The mobile client can send its own `X-Request-ID` so a
failed post upload can be traced from the phone's logs to the server's.

Client-supplied IDs land verbatim in log lines and response headers, so
only short tokens of letters, digits, `-` and `_` are accepted. Anything
else is replaced with a fresh ID.
"""

import re
import uuid
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
MAX_REQUEST_ID_LENGTH = 64

_VALID_REQUEST_ID = re.compile(r"[A-Za-z0-9_-]{1,%d}" % MAX_REQUEST_ID_LENGTH)

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def new_request_id() -> str:
    return uuid.uuid4().hex[:12]


def accept_request_id(candidate: Optional[str]) -> str:
    """The client's ID if it is a safe token, otherwise a generated one."""
    if candidate and _VALID_REQUEST_ID.fullmatch(candidate.strip()):
        return candidate.strip()
    return new_request_id()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds the ID for the request's lifetime and returns it to the client."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = accept_request_id(request.headers.get(REQUEST_ID_HEADER))
        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers[REQUEST_ID_HEADER] = rid
        return response
