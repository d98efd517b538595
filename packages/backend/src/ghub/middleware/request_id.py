"""Request ID middleware.

Learn: A caller's X-Request-ID is reused when it looks like an id (short,
no spaces or control characters); anything else is replaced with a fresh
one. The id is bound into structlog's contextvars together with the method
and path, so gateway failures and auth events logged while serving the
request can be traced back to it.
"""

import re
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

HEADER = "X-Request-ID"
_USABLE_ID = re.compile(r"[A-Za-z0-9._:-]{1,64}")


def request_id_for(request: Request) -> str:
    incoming = request.headers.get(HEADER, "")
    if _USABLE_ID.fullmatch(incoming):
        return incoming
    return uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request_id_for(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        )
        response = await call_next(request)
        response.headers[HEADER] = request_id
        return response
