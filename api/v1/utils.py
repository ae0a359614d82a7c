"""
Helpers shared by the v1 views.
"""

from typing import Optional

from rest_framework import status
from rest_framework.request import Request
from rest_framework.response import Response

from core.instrumentation import Status, StatusCode


def validation_error_response(span, errors) -> Response:
    """Mark the span failed and render serializer errors in the error envelope."""
    span.set_attribute("error", "validation_failed")
    span.set_status(Status(StatusCode.ERROR, "Validation failed"))
    return Response(
        {
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request data",
                "details": errors,
            }
        },
        status=status.HTTP_400_BAD_REQUEST,
    )


def client_ip(request: Request) -> Optional[str]:
    """Caller IP, honouring the first X-Forwarded-For hop."""
    forwarded = request.META.get("HTTP_X_FORWARDED_FOR")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.META.get("REMOTE_ADDR")


def user_agent(request: Request) -> Optional[str]:
    return request.META.get("HTTP_USER_AGENT")


def owner_id(request: Request) -> Optional[int]:
    """Id of the authenticated account, if any."""
    user = getattr(request, "user", None)
    if user is not None and user.is_authenticated:
        return user.pk
    return None
