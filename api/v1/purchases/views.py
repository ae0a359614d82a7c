"""
Purchase API views.

These endpoints are used by storefronts and the payment processor to:
- Start a hosted checkout or charge the buyer directly
- Poll a purchase and list a buyer's purchases
- Deliver payment notifications (webhook)
- Apply staff corrections
"""

import logging

from asgiref.sync import async_to_sync
from django.conf import settings
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAdminUser
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from api.v1.purchases.serializers import (
    CheckoutRequestSerializer,
    CheckoutResponseSerializer,
    DirectChargeRequestSerializer,
    DirectChargeResponseSerializer,
    DownloadRequestSerializer,
    DownloadResponseSerializer,
    MergeAccountRequestSerializer,
    MergeAccountResponseSerializer,
    ProvisioningResultSerializer,
    PurchaseListResponseSerializer,
    PurchasesByEmailQuerySerializer,
    PurchaseStatusQuerySerializer,
    PurchaseStatusResponseSerializer,
    UpdatePurchaseStatusRequestSerializer,
    WebhookResponseSerializer,
)
from api.v1.utils import client_ip, owner_id, validation_error_response
from core.domain.exceptions import WebhookSignatureError
from core.instrumentation import Status, StatusCode, get_tracer
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository
from products.infrastructure.adapters.django_artifact_locator import DjangoArtifactLocator
from products.infrastructure.repositories.django_product_repository import DjangoProductRepository
from purchases.application.commands.create_direct_charge import CreateDirectChargeCommand
from purchases.application.commands.create_purchase import CreatePurchaseCommand
from purchases.application.commands.merge_guest_account import MergeGuestAccountCommand
from purchases.application.commands.receive_webhook import ReceiveWebhookCommand
from purchases.application.commands.update_purchase_status import UpdatePurchaseStatusCommand
from purchases.application.handlers.create_direct_charge_handler import CreateDirectChargeHandler
from purchases.application.handlers.create_purchase_handler import CreatePurchaseHandler
from purchases.application.handlers.get_download_handler import GetDownloadHandler
from purchases.application.handlers.get_purchase_status_handler import GetPurchaseStatusHandler
from purchases.application.handlers.list_purchases_by_email_handler import (
    ListPurchasesByEmailHandler,
)
from purchases.application.handlers.merge_guest_account_handler import MergeGuestAccountHandler
from purchases.application.handlers.receive_webhook_handler import ReceiveWebhookHandler
from purchases.application.handlers.update_purchase_status_handler import (
    UpdatePurchaseStatusHandler,
)
from purchases.application.queries.get_download import GetDownloadQuery
from purchases.application.queries.get_purchase_status import GetPurchaseStatusQuery
from purchases.application.queries.list_purchases_by_email import ListPurchasesByEmailQuery
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.application.services.webhook_authenticator import WebhookAuthenticator
from purchases.infrastructure.adapters.mercadopago_client import build_processor_client
from purchases.infrastructure.repositories.django_identity_merge_repository import (
    DjangoIdentityMergeRepository,
)
from purchases.infrastructure.repositories.django_purchase_repository import (
    DjangoPurchaseRepository,
)

logger = logging.getLogger(__name__)

# Initialize repositories (in production, use DI container)
_product_repo = DjangoProductRepository()
_purchase_repo = DjangoPurchaseRepository()
_license_repo = DjangoLicenseRepository()
_artifact_locator = DjangoArtifactLocator()
_coordinator = ProvisioningCoordinator(
    purchase_repository=_purchase_repo,
    license_repository=_license_repo,
    product_repository=_product_repo,
    artifact_locator=_artifact_locator,
)
_processor_client = build_processor_client()
_authenticator = WebhookAuthenticator(getattr(settings, "MERCADOPAGO_WEBHOOK_SECRET", ""))

tracer = get_tracer(__name__)


class CheckoutView(APIView):
    """View for starting a hosted checkout."""

    @extend_schema(
        operation_id="create_checkout",
        summary="Create Checkout",
        description=(
            "Start a purchase of a product. Free products are approved and their "
            "licenses created immediately; paid products return the processor "
            "checkout URLs."
        ),
        tags=["Purchases"],
        request=CheckoutRequestSerializer,
        responses={
            201: CheckoutResponseSerializer,
            400: {"description": "Bad Request or product not available"},
            404: {"description": "Product not found"},
            503: {"description": "Payment processor unavailable"},
        },
    )
    def post(self, request: Request, product_id) -> Response:
        """Create a checkout."""
        return async_to_sync(self._handle_checkout)(request, product_id)

    async def _handle_checkout(self, request: Request, product_id) -> Response:
        """Async handler for checkout."""
        with tracer.start_as_current_span("create_checkout") as span:
            span.set_attribute("operation", "create_checkout")
            span.set_attribute("product.id", str(product_id))

            serializer = CheckoutRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            data = serializer.validated_data
            handler = CreatePurchaseHandler(
                product_repository=_product_repo,
                purchase_repository=_purchase_repo,
                coordinator=_coordinator,
                processor_client=_processor_client,
            )
            result = await handler.handle(
                CreatePurchaseCommand(
                    product_id=product_id,
                    payer_email=data["email"],
                    payer_name=data.get("name") or None,
                    quantity=data["quantity"],
                    owner_id=owner_id(request),
                )
            )

            span.set_attribute("purchase.id", result.purchase_id)
            span.set_attribute("purchase.status", result.status)
            span.set_status(Status(StatusCode.OK))
            return Response(
                CheckoutResponseSerializer(result).data, status=status.HTTP_201_CREATED
            )


class DirectChargeView(APIView):
    """View for charging the buyer server-side."""

    @extend_schema(
        operation_id="create_direct_charge",
        summary="Create Direct Charge",
        description=(
            "Charge a card token, PIX or boleto at the processor. Approved charges "
            "return the first license key; PIX charges return the QR code."
        ),
        tags=["Purchases"],
        request=DirectChargeRequestSerializer,
        responses={
            201: DirectChargeResponseSerializer,
            400: {"description": "Bad Request or charge refused by the processor"},
            404: {"description": "Product not found"},
            503: {"description": "Payment processor unavailable"},
        },
    )
    def post(self, request: Request, product_id) -> Response:
        """Create a direct charge."""
        return async_to_sync(self._handle_direct_charge)(request, product_id)

    async def _handle_direct_charge(self, request: Request, product_id) -> Response:
        """Async handler for direct charge."""
        with tracer.start_as_current_span("create_direct_charge") as span:
            span.set_attribute("operation", "create_direct_charge")
            span.set_attribute("product.id", str(product_id))

            serializer = DirectChargeRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            data = serializer.validated_data
            payer = data["payer"]
            identification = payer.get("identification") or {}
            handler = CreateDirectChargeHandler(
                product_repository=_product_repo,
                purchase_repository=_purchase_repo,
                license_repository=_license_repo,
                coordinator=_coordinator,
                processor_client=_processor_client,
            )
            result = await handler.handle(
                CreateDirectChargeCommand(
                    product_id=product_id,
                    payer_email=payer["email"],
                    payment_method_id=data["payment_method_id"],
                    quantity=data["quantity"],
                    token=data.get("token"),
                    installments=data.get("installments"),
                    issuer_id=data.get("issuer_id"),
                    payer_first_name=payer.get("first_name") or None,
                    payer_last_name=payer.get("last_name") or None,
                    identification_type=identification.get("type"),
                    identification_number=identification.get("number"),
                    description=data.get("description"),
                    idempotency_key=data.get("idempotency_key"),
                    device_id=data.get("device_id"),
                    tracking_id=data.get("tracking_id"),
                    ip_address=client_ip(request),
                    owner_id=owner_id(request),
                )
            )

            span.set_attribute("purchase.id", result.purchase_id)
            span.set_attribute("purchase.status", result.status)
            span.set_status(Status(StatusCode.OK))
            return Response(
                DirectChargeResponseSerializer(result).data, status=status.HTTP_201_CREATED
            )


class PurchaseStatusView(APIView):
    """View for polling a purchase from the checkout return page."""

    @extend_schema(
        operation_id="get_purchase_status",
        summary="Get Purchase Status",
        description=(
            "Look a purchase up by purchase id, processor payment id or buyer email. "
            "Answers ``not_found`` when nothing matches."
        ),
        tags=["Purchases"],
        parameters=[
            OpenApiParameter(name="purchase_id", type=str, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="payment_id", type=str, location=OpenApiParameter.QUERY),
            OpenApiParameter(name="email", type=str, location=OpenApiParameter.QUERY),
        ],
        responses={200: PurchaseStatusResponseSerializer, 400: {"description": "Bad Request"}},
    )
    def get(self, request: Request, product_id) -> Response:
        """Get purchase status."""
        return async_to_sync(self._handle_purchase_status)(request, product_id)

    async def _handle_purchase_status(self, request: Request, product_id) -> Response:
        """Async handler for purchase status."""
        with tracer.start_as_current_span("get_purchase_status") as span:
            span.set_attribute("operation", "get_purchase_status")
            span.set_attribute("product.id", str(product_id))

            serializer = PurchaseStatusQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            data = serializer.validated_data
            handler = GetPurchaseStatusHandler(
                purchase_repository=_purchase_repo,
                artifact_locator=_artifact_locator,
            )
            result = await handler.handle(
                GetPurchaseStatusQuery(
                    product_id=product_id,
                    purchase_id=data.get("purchase_id"),
                    processor_ref=data.get("payment_id"),
                    email=data.get("email"),
                )
            )

            span.set_attribute("purchase.status", result.status)
            span.set_status(Status(StatusCode.OK))
            return Response(
                PurchaseStatusResponseSerializer(result).data, status=status.HTTP_200_OK
            )


class DownloadView(APIView):
    """View for fetching a product's download reference."""

    @extend_schema(
        operation_id="get_download",
        summary="Get Download",
        description="Return the download reference to a buyer with an approved purchase.",
        tags=["Purchases"],
        request=DownloadRequestSerializer,
        responses={
            200: DownloadResponseSerializer,
            403: {"description": "No approved purchase for this email"},
            404: {"description": "Product or artifact not found"},
        },
    )
    def post(self, request: Request, product_id) -> Response:
        """Get a download reference."""
        return async_to_sync(self._handle_download)(request, product_id)

    async def _handle_download(self, request: Request, product_id) -> Response:
        """Async handler for download."""
        with tracer.start_as_current_span("get_download") as span:
            span.set_attribute("operation", "get_download")
            span.set_attribute("product.id", str(product_id))

            serializer = DownloadRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            handler = GetDownloadHandler(
                product_repository=_product_repo,
                purchase_repository=_purchase_repo,
                artifact_locator=_artifact_locator,
            )
            result = await handler.handle(
                GetDownloadQuery(product_id=product_id, email=serializer.validated_data["email"])
            )

            span.set_status(Status(StatusCode.OK))
            return Response(DownloadResponseSerializer(result).data, status=status.HTTP_200_OK)


class PurchasesByEmailView(APIView):
    """View for a buyer's purchase history."""

    @extend_schema(
        operation_id="list_purchases_by_email",
        summary="List Purchases by Email",
        description="List the approved purchases of an email, with download references.",
        tags=["Purchases"],
        parameters=[
            OpenApiParameter(name="email", type=str, location=OpenApiParameter.QUERY, required=True),
            OpenApiParameter(name="product_id", type=str, location=OpenApiParameter.QUERY),
        ],
        responses={200: PurchaseListResponseSerializer, 400: {"description": "Bad Request"}},
    )
    def get(self, request: Request) -> Response:
        """List purchases of an email."""
        return async_to_sync(self._handle_purchases_by_email)(request)

    async def _handle_purchases_by_email(self, request: Request) -> Response:
        """Async handler for purchases by email."""
        with tracer.start_as_current_span("list_purchases_by_email") as span:
            span.set_attribute("operation", "list_purchases_by_email")

            serializer = PurchasesByEmailQuerySerializer(data=request.query_params)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            data = serializer.validated_data
            handler = ListPurchasesByEmailHandler(
                purchase_repository=_purchase_repo,
                product_repository=_product_repo,
                artifact_locator=_artifact_locator,
            )
            result = await handler.handle(
                ListPurchasesByEmailQuery(email=data["email"], product_id=data.get("product_id"))
            )

            span.set_attribute("purchases.count", len(result.purchases))
            span.set_status(Status(StatusCode.OK))
            return Response(
                PurchaseListResponseSerializer(result).data, status=status.HTTP_200_OK
            )


class WebhookView(APIView):
    """
    Payment processor notifications.

    Answers 401 when the signature does not check out and 200 for every
    authenticated delivery, processed or not, so the processor stops
    retrying deliveries that were already seen.
    """

    authentication_classes = []
    permission_classes = [AllowAny]

    @extend_schema(
        operation_id="receive_webhook",
        summary="Receive Payment Webhook",
        tags=["Webhooks"],
        request=None,
        responses={
            200: WebhookResponseSerializer,
            401: {"description": "Invalid or missing signature"},
        },
    )
    def post(self, request: Request) -> Response:
        """Receive a payment notification."""
        return async_to_sync(self._handle_webhook)(request)

    async def _handle_webhook(self, request: Request) -> Response:
        """Async handler for webhook."""
        with tracer.start_as_current_span("receive_webhook") as span:
            span.set_attribute("operation", "receive_webhook")

            body = request.data if isinstance(request.data, dict) else {}
            handler = ReceiveWebhookHandler(
                coordinator=_coordinator,
                processor_client=_processor_client,
                authenticator=_authenticator,
            )
            try:
                result = await handler.handle(
                    ReceiveWebhookCommand(
                        headers=dict(request.headers),
                        body=body,
                        query=request.query_params.dict(),
                    )
                )
            except WebhookSignatureError:
                span.set_status(Status(StatusCode.ERROR, "Invalid signature"))
                raise
            except Exception as e:
                # Acknowledged anyway; the failure is in the logs
                logger.error("Webhook processing failed: %s", e, exc_info=True)
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, str(e)))
                return Response(
                    {"received": True, "processed": False, "reason": "internal error"},
                    status=status.HTTP_200_OK,
                )

            span.set_attribute("webhook.processed", str(result.processed))
            span.set_status(Status(StatusCode.OK))
            return Response(
                {"received": True, "processed": result.processed, "reason": result.reason},
                status=status.HTTP_200_OK,
            )


class UpdatePurchaseStatusView(APIView):
    """Staff view for overriding a purchase status."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="update_purchase_status",
        summary="Update Purchase Status",
        description=(
            "Set a purchase's canonical status by hand. The change goes through the "
            "same rules as processor notifications: approving creates the licenses "
            "and stale transitions are ignored."
        ),
        tags=["Purchases"],
        request=UpdatePurchaseStatusRequestSerializer,
        responses={
            200: ProvisioningResultSerializer,
            400: {"description": "Bad Request"},
            403: {"description": "Staff only"},
            404: {"description": "Purchase not found"},
        },
    )
    def post(self, request: Request, purchase_id: str) -> Response:
        """Update purchase status."""
        return async_to_sync(self._handle_update_status)(request, purchase_id)

    async def _handle_update_status(self, request: Request, purchase_id: str) -> Response:
        """Async handler for update purchase status."""
        with tracer.start_as_current_span("update_purchase_status") as span:
            span.set_attribute("operation", "update_purchase_status")
            span.set_attribute("purchase.id", purchase_id)

            serializer = UpdatePurchaseStatusRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            handler = UpdatePurchaseStatusHandler(
                purchase_repository=_purchase_repo,
                coordinator=_coordinator,
            )
            result = await handler.handle(
                UpdatePurchaseStatusCommand(
                    purchase_id=purchase_id,
                    status=serializer.validated_data["status"],
                )
            )

            span.set_attribute("purchase.changed", str(result.changed))
            span.set_status(Status(StatusCode.OK))
            return Response(ProvisioningResultSerializer(result).data, status=status.HTTP_200_OK)


class MergeAccountView(APIView):
    """Staff view for merging a guest account into a registered one."""

    permission_classes = [IsAdminUser]

    @extend_schema(
        operation_id="merge_guest_account",
        summary="Merge Guest Account",
        description="Move the purchases and licenses of a guest account to a registered account.",
        tags=["Accounts"],
        request=MergeAccountRequestSerializer,
        responses={
            200: MergeAccountResponseSerializer,
            400: {"description": "Bad Request"},
            403: {"description": "Staff only"},
            404: {"description": "Account not found"},
        },
    )
    def post(self, request: Request) -> Response:
        """Merge a guest account."""
        return async_to_sync(self._handle_merge)(request)

    async def _handle_merge(self, request: Request) -> Response:
        """Async handler for guest account merge."""
        with tracer.start_as_current_span("merge_guest_account") as span:
            span.set_attribute("operation", "merge_guest_account")

            serializer = MergeAccountRequestSerializer(data=request.data)
            if not serializer.is_valid():
                return validation_error_response(span, serializer.errors)

            data = serializer.validated_data
            handler = MergeGuestAccountHandler(
                identity_merge_repository=DjangoIdentityMergeRepository()
            )
            result = await handler.handle(
                MergeGuestAccountCommand(guest_id=data["guest_id"], account_id=data["account_id"])
            )

            span.set_status(Status(StatusCode.OK))
            return Response(
                MergeAccountResponseSerializer(result).data, status=status.HTTP_200_OK
            )
