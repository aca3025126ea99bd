"""Per-request log lines, request ids and a server span."""

import logging
import time
import uuid
from typing import Any, Callable, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from schoolhub.utils.context import clear_context, set_context
from schoolhub.utils.telemetry import add_span_attributes, get_tracer

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def request_fields(request: Request) -> Dict[str, Any]:
    # Path only; query strings can carry credentials.
    return {"method": request.method, "path": request.url.path}


class LoggingMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its start and outcome.

    An incoming ``X-Request-ID`` is reused, otherwise a uuid4 hex is
    generated. The id is set in the logging context for the duration of the
    request and echoed on the response. Responses with status >= 400 are
    logged at WARNING.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        fields = request_fields(request)
        set_context(request_id=request_id, action="http.request")

        try:
            with get_tracer().start_as_current_span(
                f"{request.method} {request.url.path}"
            ) as span:
                add_span_attributes(
                    **{
                        "http.method": request.method,
                        "http.path": request.url.path,
                        "http.client_ip": request.client.host if request.client else None,
                        "http.request_id": request_id,
                    }
                )
                logger.info(
                    "Request started",
                    extra={**fields, "user_agent": request.headers.get("user-agent")},
                )

                started = time.perf_counter()
                try:
                    response = await call_next(request)
                except Exception as e:
                    span.record_exception(e)
                    logger.error(
                        "Request failed",
                        extra={
                            **fields,
                            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                            "error_type": type(e).__name__,
                            "error": str(e),
                        },
                    )
                    raise

                duration_ms = round((time.perf_counter() - started) * 1000, 2)
                add_span_attributes(
                    **{
                        "http.status_code": response.status_code,
                        "http.duration_ms": duration_ms,
                    }
                )
                response.headers[REQUEST_ID_HEADER] = request_id
                response.headers["X-Process-Time"] = f"{duration_ms:.2f}ms"

                level = logging.WARNING if response.status_code >= 400 else logging.INFO
                logger.log(
                    level,
                    "Request completed",
                    extra={
                        **fields,
                        "status_code": response.status_code,
                        "duration_ms": duration_ms,
                    },
                )
                return response
        finally:
            clear_context()
