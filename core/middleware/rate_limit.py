"""
Rate limiting middleware.

Fixed one-minute windows per client IP and API area. Device activation
has its own, tighter budget because every attempt is written to the
activation log.
"""

import hashlib
import time
from typing import Callable, Optional, Tuple

from django.conf import settings
from django.core.cache import cache
from django.http import HttpRequest, HttpResponse, JsonResponse

from core.metrics import errors_total

WINDOW_SECONDS = 60

# Checked in order; first matching prefix wins
SCOPES = (
    ("/api/v1/licenses/activate-device", "activation"),
    ("/api/v1/licenses/", "licenses"),
    ("/api/v1/purchases/", "purchases"),
)

# The processor retries on 429, so notifications are never limited
EXEMPT_PATHS = ("/api/v1/purchases/webhook",)


def scope_for(path: str) -> Optional[str]:
    """Rate limit scope of a path, None when the path is not limited."""
    if path.startswith(EXEMPT_PATHS):
        return None
    for prefix, scope in SCOPES:
        if path.startswith(prefix):
            return scope
    return None


class RateLimitMiddleware:
    """
    Per-IP request budget kept in the Django cache.

    ``RATE_LIMIT_PER_MINUTE`` applies to every scope except ``activation``,
    which uses ``RATE_LIMIT_ACTIVATIONS_PER_MINUTE``.
    """

    def __init__(self, get_response: Callable):
        """Initialize middleware."""
        self.get_response = get_response

    @property
    def enabled(self) -> bool:
        return getattr(settings, "RATE_LIMIT_ENABLED", True)

    def limit_for(self, scope: str) -> int:
        default = getattr(settings, "RATE_LIMIT_PER_MINUTE", 60)
        if scope == "activation":
            return getattr(settings, "RATE_LIMIT_ACTIVATIONS_PER_MINUTE", default)
        return default

    @staticmethod
    def _client_ip(request: HttpRequest) -> Optional[str]:
        forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.META.get("REMOTE_ADDR")

    def _take(self, client_ip: str, scope: str, limit: int) -> Tuple[bool, int, int]:
        """
        Count one request against the current window.

        Returns:
            Tuple of (is_allowed, remaining, reset_time)
        """
        window = int(time.time() // WINDOW_SECONDS)
        # Raw addresses are not stored
        ip_hash = hashlib.sha256(client_ip.encode()).hexdigest()[:16]
        key = f"rate_limit:{scope}:{ip_hash}:{window}"
        reset_time = (window + 1) * WINDOW_SECONDS

        if cache.get(key, 0) >= limit:
            return False, 0, reset_time

        if cache.add(key, 1, timeout=WINDOW_SECONDS):
            count = 1
        else:
            count = cache.incr(key)
        return True, max(0, limit - count), reset_time

    def __call__(self, request: HttpRequest) -> HttpResponse:
        scope = scope_for(request.path) if self.enabled else None
        client_ip = self._client_ip(request) if scope else None
        if not client_ip:
            return self.get_response(request)

        limit = self.limit_for(scope)
        allowed, remaining, reset_time = self._take(client_ip, scope, limit)

        if allowed:
            response = self.get_response(request)
        else:
            errors_total.labels(error_type="rate_limit_exceeded", endpoint=request.path).inc()
            response = JsonResponse(
                {
                    "error": {
                        "code": "RATE_LIMIT_EXCEEDED",
                        "message": "Rate limit exceeded. Please try again later.",
                    }
                },
                status=429,
            )
            response["Retry-After"] = str(max(0, reset_time - int(time.time())))

        response["X-RateLimit-Limit"] = str(limit)
        response["X-RateLimit-Remaining"] = str(remaining)
        response["X-RateLimit-Reset"] = str(reset_time)
        return response
