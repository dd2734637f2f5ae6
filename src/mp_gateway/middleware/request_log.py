"""Request logging middleware.

Logs every HTTP request with method, path, status code, latency, and
a short request ID for correlation. The request_id is also injected into
request.state so handlers can echo it in ApiResponse.

Webhook deliveries additionally log the gateway signature presence, never
its value.

Log format:
    INFO [POST] /api/paystack/webhook → 200 (23ms) req=a1b2c3d4e5f6
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("mp.request")

_SIGNATURE_HEADER = "x-paystack-signature"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = f"req_{uuid.uuid4().hex[:12]}"

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        if _SIGNATURE_HEADER in request.headers:
            logger.info(
                "[%s] %s → %d (%.0fms) req=%s signed=yes",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request.state.request_id,
            )
        else:
            logger.info(
                "[%s] %s → %d (%.0fms) req=%s",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
                request.state.request_id,
            )
        response.headers["x-request-id"] = request.state.request_id
        return response
