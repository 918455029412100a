"""Request logging for scanner stations and public registration traffic."""
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from rollcall.core.rate_limit import get_client_ip

logger = structlog.get_logger(__name__)

# Load balancer health checks; logged only when they fail
QUIET_PATHS = frozenset({"/health"})


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Bind request details to every log event emitted while serving a request.

    A scanner station may send its own ``X-Request-ID`` so its retries can be
    correlated with server logs; otherwise one is generated. Client host is
    resolved the same way admission control resolves it, so throttled
    registrants can be traced by the address their counters are keyed on.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_host=get_client_ip(request),
        )

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                exception=str(exc),
                exception_type=type(exc).__name__,
                duration_ms=_elapsed_ms(start),
            )
            raise

        response.headers["X-Request-ID"] = request_id
        status = response.status_code
        duration_ms = _elapsed_ms(start)

        if status >= 500:
            logger.error("request_completed", status_code=status, duration_ms=duration_ms)
        elif status == 429:
            logger.warning(
                "request_throttled",
                status_code=status,
                retry_after=response.headers.get("Retry-After"),
                duration_ms=duration_ms,
            )
        elif request.url.path not in QUIET_PATHS:
            logger.info("request_completed", status_code=status, duration_ms=duration_ms)

        return response
