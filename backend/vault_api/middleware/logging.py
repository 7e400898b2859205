"""
Vault API Backend: Request Logging Middleware
==============================================

What:  One access-log line per request on the "vault_api.access" logger.
Who:   Applied to every request except the paths in QUIET_PATHS.

Level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Only the route is logged. Request bodies and query strings are not, since
entry content and search terms are private.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from vault_api.middleware.request_id import request_id_var

logger = logging.getLogger("vault_api.access")

# Health probes arrive every few seconds
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)

        rid = request_id_var.get("")
        client = request.client.host if request.client else "-"
        logger.log(
            level_for_status(response.status_code),
            "[%s] %s %s → %d (%.1fms, %s)",
            rid,
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            client,
            extra={
                "request_id": rid,
                "status": response.status_code,
                "duration_ms": elapsed_ms,
            },
        )
        return response
