"""
Stockroom — Request ID Middleware
===================================

What:  Assigns a correlation ID to each request and returns it in X-Request-ID.
Why:   Every log line and error body for one request shares the same ID, so a
       client-reported error can be found in the logs directly.
How:   Reuses the caller's X-Request-ID (e.g. from an upstream gateway) or
       generates a short UUID, stores it in a ContextVar and request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# ContextVar, not threading.local: concurrent requests share one thread under asyncio
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        # 8 characters is plenty for correlation and keeps log lines short
        rid = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
