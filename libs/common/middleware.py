"""Request tracing middleware for the FastAPI apps.

Every request gets an ``X-Request-ID`` (propagated when the caller sends
one), is bound to the logging context for its lifetime, and is logged on
completion with its status code and duration.

Usage:
    from libs.common.middleware import add_observability_middleware

    app = FastAPI()
    add_observability_middleware(app)
"""

import time
from typing import Callable

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from libs.common.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)

logger = get_logger(__name__)

_QUIET_PATHS = {"/health"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind request context for log correlation and time each request."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = set_request_context(
            request_id=request.headers.get("X-Request-ID"),
            path=request.url.path,
            method=request.method,
        )
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled error on %s %s after %.2fms",
                request.method,
                request.url.path,
                (time.perf_counter() - started) * 1000,
            )
            raise
        finally:
            clear_request_context()

        duration_ms = (time.perf_counter() - started) * 1000
        if request.url.path not in _QUIET_PATHS:
            level = "warning" if response.status_code >= 400 else "info"
            getattr(logger, level)(
                "%s %s -> %d",
                request.method,
                request.url.path,
                response.status_code,
                extra={
                    "extra_fields": {
                        "status_code": response.status_code,
                        "duration_ms": round(duration_ms, 2),
                    }
                },
            )

        response.headers["X-Request-ID"] = request_id
        return response


def add_observability_middleware(app: FastAPI) -> None:
    """
    Configure logging and install request tracing on a FastAPI app.
    """
    configure_logging()
    app.add_middleware(RequestContextMiddleware)
