"""Request timing and tracing middleware for the labour tracking API."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from site_labour.services.logging_config import request_id_ctx

logger = logging.getLogger("site-labour.middleware")

SKIP_LOG_PATHS = {"/health"}
MAX_REQUEST_ID_LENGTH = 64


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    - Reuses the caller's X-Request-ID (tablets retry sync batches under the
      same id) or assigns a uuid4, and echoes it on the response.
    - Publishes the id through ``request_id_ctx`` so calculator, analysis and
      sync log lines written during the request carry it.
    - Adds X-Process-Time and emits one log line per request (except /health).
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = (request.headers.get("X-Request-ID") or "").strip()[:MAX_REQUEST_ID_LENGTH]
        request_id = request_id or str(uuid.uuid4())
        start_time = time.perf_counter()

        request.state.request_id = request_id
        token = request_id_ctx.set(request_id)
        try:
            response: Response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            logger.info(
                "request completed",
                extra={
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": response.status_code,
                    "request_id": request_id,
                    "duration_ms": duration_ms,
                },
            )

        return response
