"""Per-request id, echoed in ``X-Request-ID`` and attached to log lines."""
from __future__ import annotations

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

# Upstream proxies may set the id; anything that would garble a log line is replaced.
_ACCEPTED_ID = re.compile(r"[A-Za-z0-9._:-]{1,128}")

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="-")


def current_request_id() -> str:
    return correlation_id_ctx.get()


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        supplied = request.headers.get(REQUEST_ID_HEADER, "")
        request_id = supplied if _ACCEPTED_ID.fullmatch(supplied) else uuid.uuid4().hex
        request.state.request_id = request_id

        reset_token = correlation_id_ctx.set(request_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_ctx.reset(reset_token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
