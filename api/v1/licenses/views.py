"""
License API views.

These endpoints are used by installed products to:
- Activate a device
- Verify a device (plus the legacy check used by older clients)
- Recover license keys by email
"""

from asgiref.sync import async_to_sync
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from activations.application.commands.activate_device import ActivateDeviceCommand
from activations.application.handlers.activate_device_handler import ActivateDeviceHandler
from activations.application.handlers.verify_device_handler import VerifyDeviceHandler
from activations.application.queries.verify_device import VerifyDeviceQuery
from activations.application.services.activation_audit import ActivationAuditor
from activations.infrastructure.repositories.django_activation_log_repository import (
    DjangoActivationLogRepository,
)
from api.v1.licenses.serializers import (
    ActivationResponseSerializer,
    ClaimByEmailRequestSerializer,
    CompatCheckRequestSerializer,
    DeviceRequestSerializer,
    LicenseListResponseSerializer,
    ReleaseResponseSerializer,
    VerificationResponseSerializer,
)
from api.v1.utils import client_ip, owner_id, user_agent, validation_error_response
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.application.commands.release_device import ReleaseDeviceCommand
from licenses.application.handlers.list_licenses_by_email_handler import (
    ListLicensesByEmailHandler,
)
from licenses.application.handlers.release_device_handler import ReleaseDeviceHandler
from licenses.application.queries.list_licenses_by_email import ListLicensesByEmailQuery
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from products.infrastructure.repositories.django_product_repository import DjangoProductRepository
from purchases.infrastructure.repositories.django_purchase_repository import (
    DjangoPurchaseRepository,
)

# Initialize repositories (in production, use DI container)
_product_repo = DjangoProductRepository()
_purchase_repo = DjangoPurchaseRepository()
_license_repo = DjangoLicenseRepository()
_auditor = ActivationAuditor(DjangoActivationLogRepository())

tracer = get_tracer(__name__)


async def _verify(request: Request, data: dict, span) -> Response:
    span.set_attribute("product.id", str(data["product_id"]))
    span.set_attribute("hardware_id", data["hardware_id"])

    handler = VerifyDeviceHandler(
        product_repository=_product_repo,
        license_repository=_license_repo,
        auditor=_auditor,
    )
    result = await handler.handle(
        VerifyDeviceQuery(
            product_id=data["product_id"],
            email=data["email"],
            hardware_id=data["hardware_id"],
            ip=client_ip(request),
            user_agent=user_agent(request),
        )
    )

    span.set_attribute("valid", str(result.valid))
    span.set_status(Status(StatusCode.OK))
    return Response(VerificationResponseSerializer(result).data, status=status.HTTP_200_OK)


class ActivateDeviceView(APIView):
    """View for activating a product on a device."""

    @extend_schema(
        operation_id="activate_device",
        summary="Activate Device",
        description=(
            "Bind a device to one of the caller's license seats. Activating an "
            "already bound device returns the same key. Each approved seat allows "
            "up to three devices."
        ),
        tags=["Licenses"],
        request=DeviceRequestSerializer,
        responses={
            200: ActivationResponseSerializer,
            400: {"description": "Bad Request"},
            403: {"description": "No license for this email, or device limit reached"},
            404: {"description": "Product not found"},
        },
    )
    def post(self, request: Request) -> Response:
        """Activate a device."""
        return async_to_sync(self._handle_activate_device)(request)

    async def _handle_activate_device(self, request: Request) -> Response:
        """Async handler for activate device."""
        with tracer.start_as_current_span("activate_device") as span:
            span.set_attribute("operation", "activate_device")

            serializer = DeviceRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            data = serializer.validated_data
            span.set_attribute("product.id", str(data["product_id"]))
            span.set_attribute("hardware_id", data["hardware_id"])

            handler = ActivateDeviceHandler(
                product_repository=_product_repo,
                purchase_repository=_purchase_repo,
                license_repository=_license_repo,
                auditor=_auditor,
            )
            result = await handler.handle(
                ActivateDeviceCommand(
                    product_id=data["product_id"],
                    email=data["email"],
                    hardware_id=data["hardware_id"],
                    ip=client_ip(request),
                    user_agent=user_agent(request),
                    owner_id=owner_id(request),
                )
            )

            span.set_attribute("license.id", str(result.license_id))
            span.set_status(Status(StatusCode.OK))
            return Response(ActivationResponseSerializer(result).data, status=status.HTTP_200_OK)


class VerifyDeviceView(APIView):
    """View for verifying a product on a device."""

    @extend_schema(
        operation_id="verify_device",
        summary="Verify Device",
        description="Check whether a device holds a license. Never binds anything.",
        tags=["Licenses"],
        request=DeviceRequestSerializer,
        responses={
            200: VerificationResponseSerializer,
            400: {"description": "Bad Request"},
        },
    )
    def post(self, request: Request) -> Response:
        """Verify a device."""
        return async_to_sync(self._handle_verify_device)(request)

    async def _handle_verify_device(self, request: Request) -> Response:
        """Async handler for verify device."""
        with tracer.start_as_current_span("verify_device") as span:
            span.set_attribute("operation", "verify_device")

            serializer = DeviceRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)
            return await _verify(request, serializer.validated_data, span)


class CompatLicenseCheckView(APIView):
    """Legacy license check, reachable with GET or POST."""

    @extend_schema(
        operation_id="compat_license_check",
        summary="Legacy License Check",
        description=(
            "Verification for older clients. Accepts the parameters in the query "
            "string or the body; ``pc_id``/``id_pc`` are accepted for ``hardware_id`` "
            "and ``app_id`` for ``product_id``."
        ),
        tags=["Licenses"],
        parameters=[
            OpenApiParameter(name="product_id", type=str, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="email", type=str, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="pc_id", type=str, location=OpenApiParameter.QUERY),
        ],
        responses={200: VerificationResponseSerializer, 400: {"description": "Bad Request"}},
    )
    def get(self, request: Request) -> Response:
        """Legacy check from query parameters."""
        return async_to_sync(self._handle_compat_check)(request, request.query_params)

    @extend_schema(
        operation_id="compat_license_check_post",
        summary="Legacy License Check",
        tags=["Licenses"],
        request=CompatCheckRequestSerializer,
        responses={200: VerificationResponseSerializer, 400: {"description": "Bad Request"}},
    )
    def post(self, request: Request) -> Response:
        """Legacy check from the body, falling back to query parameters."""
        data = request.query_params.dict()
        if hasattr(request.data, "items"):
            data.update({key: value for key, value in request.data.items()})
        return async_to_sync(self._handle_compat_check)(request, data)

    async def _handle_compat_check(self, request: Request, params) -> Response:
        """Async handler for the legacy check."""
        with tracer.start_as_current_span("compat_license_check") as span:
            span.set_attribute("operation", "compat_license_check")

            serializer = CompatCheckRequestSerializer(data=params)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)
            return await _verify(request, serializer.validated_data, span)


class ClaimByEmailView(APIView):
    """View for recovering license keys by email."""

    @extend_schema(
        operation_id="claim_by_email",
        summary="Claim Licenses by Email",
        description="List every license held by an email, with its key and bound device.",
        tags=["Licenses"],
        request=ClaimByEmailRequestSerializer,
        responses={200: LicenseListResponseSerializer, 400: {"description": "Bad Request"}},
    )
    def post(self, request: Request) -> Response:
        """List licenses of an email."""
        return async_to_sync(self._handle_claim_by_email)(request)

    async def _handle_claim_by_email(self, request: Request) -> Response:
        """Async handler for claim by email."""
        with tracer.start_as_current_span("claim_by_email") as span:
            span.set_attribute("operation", "claim_by_email")

            serializer = ClaimByEmailRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            handler = ListLicensesByEmailHandler(
                license_repository=_license_repo,
                product_repository=_product_repo,
            )
            result = await handler.handle(
                ListLicensesByEmailQuery(email=serializer.validated_data["email"])
            )

            span.set_attribute("licenses.count", len(result.licenses))
            span.set_status(Status(StatusCode.OK))
            return Response(LicenseListResponseSerializer(result).data, status=status.HTTP_200_OK)


class ReleaseDeviceView(APIView):
    """Staff view for freeing a license's slot."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="release_device",
        summary="Release Device",
        description="Unbind the device of a license so another device can use the seat.",
        tags=["Licenses"],
        request=None,
        responses={
            200: ReleaseResponseSerializer,
            403: {"description": "Staff only"},
            404: {"description": "License not found"},
        },
    )
    def post(self, request: Request, license_id: int) -> Response:
        """Release the device of a license."""
        return async_to_sync(self._handle_release_device)(request, license_id)

    async def _handle_release_device(self, request: Request, license_id: int) -> Response:
        """Async handler for release device."""
        with tracer.start_as_current_span("release_device") as span:
            span.set_attribute("operation", "release_device")
            span.set_attribute("license.id", str(license_id))

            handler = ReleaseDeviceHandler(license_repository=_license_repo, auditor=_auditor)
            result = await handler.handle(
                ReleaseDeviceCommand(
                    license_id=license_id,
                    actor=request.user.get_username(),
                    ip=client_ip(request),
                    user_agent=user_agent(request),
                )
            )

            span.set_status(Status(StatusCode.OK))
            return Response(ReleaseResponseSerializer(result).data, status=status.HTTP_200_OK)
