"""
Observability middleware.

Tags every API request with a correlation id and writes one structured
log line when it completes, carrying the route name and the product,
purchase or license the request was about.
"""

import logging
import time
import uuid
from typing import Any, Callable, Dict, Optional

from django.http import HttpRequest, HttpResponse
from opentelemetry import trace
from opentelemetry.trace import format_span_id, format_trace_id

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "HTTP_X_CORRELATION_ID"
# Sent by the payment processor on every notification
PROCESSOR_REQUEST_HEADER = "HTTP_X_REQUEST_ID"

# Probes hit these every few seconds
QUIET_PREFIXES = ("/health/", "/ready/")

ROUTE_KWARGS = ("product_id", "purchase_id", "license_id")


def request_status(status_code: int) -> str:
    """Bucket a status code for logs and headers."""
    if status_code >= 500:
        return "server_error"
    if status_code >= 400:
        return "client_error"
    return "success"


def trace_ids() -> Dict[str, str]:
    """Ids of the active span, empty when tracing is off."""
    context = trace.get_current_span().get_span_context()
    if not context.is_valid:
        return {}
    return {
        "trace_id": format_trace_id(context.trace_id),
        "span_id": format_span_id(context.span_id),
    }


class ObservabilityMiddleware:
    """
    Correlation ids, request logs and timing headers.

    The correlation id is the caller's ``X-Correlation-ID`` when present,
    then the processor's ``X-Request-Id`` so webhook logs can be matched
    with the processor dashboard, and a fresh UUID otherwise.
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        correlation_id = (
            request.META.get(CORRELATION_HEADER)
            or request.META.get(PROCESSOR_REQUEST_HEADER)
            or str(uuid.uuid4())
        )
        request.correlation_id = correlation_id  # type: ignore
        request.route_context = {}  # type: ignore

        ids = trace_ids()
        if ids:
            request.trace_id = ids["trace_id"]  # type: ignore

        quiet = request.path.startswith(QUIET_PREFIXES)
        started = time.monotonic()
        try:
            response = self.get_response(request)
        except Exception as e:
            logger.error(
                "Request failed: %s %s",
                request.method,
                request.path,
                extra={
                    **self._base_extra(request, correlation_id, ids),
                    "error_type": type(e).__name__,
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                },
                exc_info=True,
            )
            raise

        duration = time.monotonic() - started
        outcome = request_status(response.status_code)
        if not quiet:
            self._log_response(request, response, correlation_id, ids, outcome, duration)

        response["X-Correlation-ID"] = correlation_id
        response["X-Request-Status"] = outcome
        response["X-Request-Duration"] = f"{duration:.3f}"
        if ids:
            response["X-Trace-ID"] = ids["trace_id"]
        return response

    def process_view(self, request: HttpRequest, view_func, view_args, view_kwargs):
        """Remember which route and which ids the request resolved to."""
        context: Dict[str, Any] = {}
        match = getattr(request, "resolver_match", None)
        if match is not None and match.view_name:
            context["route"] = match.view_name
        for name in ROUTE_KWARGS:
            if name in view_kwargs:
                context[name] = str(view_kwargs[name])
        request.route_context = context  # type: ignore
        return None

    def _base_extra(
        self, request: HttpRequest, correlation_id: str, ids: Dict[str, str]
    ) -> Dict[str, Any]:
        extra: Dict[str, Any] = {
            "correlation_id": correlation_id,
            "method": request.method,
            "path": request.path,
            "remote_addr": request.META.get("REMOTE_ADDR"),
            **ids,
        }
        extra.update(getattr(request, "route_context", {}))
        user_id = self._user_id(request)
        if user_id is not None:
            extra["user_id"] = user_id
        return extra

    def _log_response(self, request, response, correlation_id, ids, outcome, duration):
        extra = self._base_extra(request, correlation_id, ids)
        extra.update(
            {
                "request_status": outcome,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
                "user_agent": request.META.get("HTTP_USER_AGENT", ""),
            }
        )
        message = "%s %s -> %s"
        args = (request.method, request.path, response.status_code)
        if outcome == "server_error":
            logger.error(message, *args, extra=extra)
        elif outcome == "client_error":
            logger.warning(message, *args, extra=extra)
        else:
            logger.info(message, *args, extra=extra)

    @staticmethod
    def _user_id(request: HttpRequest) -> Optional[int]:
        user = getattr(request, "user", None)
        if user is not None and user.is_authenticated:
            return user.pk
        return None
