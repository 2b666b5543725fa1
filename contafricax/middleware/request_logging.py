import json
import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from contafricax.utils.request_ctx import request_id as rid_ctx

log = logging.getLogger("contafricax.request")

# health checks are polled constantly; keep them out of INFO logs
QUIET_PATHS = frozenset({"/health", "/ready", "/metrics"})


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Tag each request with an ``X-Request-ID`` and emit one JSON access line."""

    async def dispatch(self, request: Request, call_next):
        t0 = time.perf_counter()
        rid = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        token = rid_ctx.set(rid)
        try:
            response: Response = await call_next(request)
        finally:
            rid_ctx.reset(token)
        response.headers["X-Request-ID"] = rid

        entry = {
            "rid": rid,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - t0) * 1000, 1),
            "client_ip": request.client.host if request.client else "unknown",
        }
        size = response.headers.get("content-length")
        if size:
            entry["bytes"] = int(size)

        if response.status_code >= 500:
            level = logging.WARNING
        elif request.url.path in QUIET_PATHS:
            level = logging.DEBUG
        else:
            level = logging.INFO
        log.log(level, json.dumps(entry, ensure_ascii=False))
        return response
