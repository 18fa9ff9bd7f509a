"""
Stockroom — Request Logging Middleware
========================================

What:  One access log line per request: service, method, path, status, duration,
       request ID, client IP.
How:   Measures from middleware entry to response; picks the log level from
       the status class (5xx → ERROR, 4xx → WARNING, else INFO).
When:  Inside RequestIDMiddleware, so the request ID is already set.

Not logged: request bodies (order payloads, form data) and headers.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from stockroom.middleware.request_id import request_id_var

logger = logging.getLogger("stockroom.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    # Probed every few seconds by orchestrators; logging them drowns real traffic
    SKIPPED_PATHS = {"/health"}

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.SKIPPED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")
        service = getattr(request.app.state, "service", "unknown")

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s: %s %s %d %.1fms [%s] from %s",
            service,
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "service": service,
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )

        return response
