"""
CreateDirectChargeHandler.

Handles server-initiated charges. The status the processor returns
synchronously is one of the two completion channels; the webhook for
the same payment may arrive before or after it.
"""

import logging
from typing import Optional

from core.domain.exceptions import UpstreamUnavailableError
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository
from purchases.application.commands.create_direct_charge import CreateDirectChargeCommand
from purchases.application.dto.purchase_dto import DirectChargeResultDTO
from purchases.application.handlers.create_purchase_handler import (
    load_purchasable_product,
    record_free_purchase,
    record_purchase,
)
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.domain.purchase import Purchase, PurchaseOrigin
from purchases.ports.payment_processor import ChargeRequest, PaymentProcessorClient
from purchases.ports.purchase_repository import PurchaseRepository

logger = logging.getLogger(__name__)


class CreateDirectChargeHandler:
    """Handler for CreateDirectChargeCommand."""

    def __init__(
        self,
        product_repository: ProductRepository,
        purchase_repository: PurchaseRepository,
        license_repository: LicenseRepository,
        coordinator: ProvisioningCoordinator,
        processor_client: Optional[PaymentProcessorClient],
    ):
        """Initialize handler with repositories."""
        self.product_repository = product_repository
        self.purchase_repository = purchase_repository
        self.license_repository = license_repository
        self.coordinator = coordinator
        self.processor_client = processor_client

    async def handle(self, command: CreateDirectChargeCommand) -> DirectChargeResultDTO:
        """
        Handle create direct charge command.

        Args:
            command: CreateDirectChargeCommand

        Returns:
            DirectChargeResultDTO with the canonical status, the first
            license key when approved and PIX data when present

        Raises:
            ProductNotFoundError: If product not found
            ProductNotAvailableError: If product is not published
            UpstreamUnavailableError: If the processor is not configured or down
            PaymentProcessorError: If the processor rejects the charge
        """
        product = await load_purchasable_product(self.product_repository, command.product_id)

        if product.is_free:
            free = await record_free_purchase(
                self.purchase_repository,
                self.coordinator,
                product,
                payer_email=command.payer_email,
                quantity=command.quantity,
                payer_name=_full_name(command),
                owner_id=command.owner_id,
            )
            return DirectChargeResultDTO(
                purchase_id=free.purchase_id,
                status=free.status,
                license_key=free.license_key,
            )

        if self.processor_client is None:
            raise UpstreamUnavailableError("Payment processor is not configured")

        purchase = await record_purchase(
            self.purchase_repository,
            Purchase.create(
                product_id=product.id,
                quantity=command.quantity,
                unit_price=product.price,
                payer_email=command.payer_email,
                payer_name=_full_name(command),
                payer_document=command.identification_number,
                owner_id=command.owner_id,
                origin=PurchaseOrigin.DIRECT_CHARGE,
                currency=product.currency,
            ),
            PurchaseOrigin.DIRECT_CHARGE,
        )

        payment = await self.processor_client.create_charge(
            ChargeRequest(
                external_reference=purchase.id,
                amount=purchase.amount,
                description=command.description or product.name,
                payment_method_id=command.payment_method_id,
                payer_email=purchase.payer_email,
                item_id=str(product.id),
                item_title=product.name,
                quantity=purchase.quantity,
                unit_price=purchase.unit_price,
                idempotency_key=command.idempotency_key or purchase.id,
                token=command.token,
                installments=command.installments,
                issuer_id=command.issuer_id,
                payer_first_name=command.payer_first_name,
                payer_last_name=command.payer_last_name,
                identification_type=command.identification_type,
                identification_number=command.identification_number,
                ip_address=command.ip_address,
                device_id=command.device_id,
                tracking_id=command.tracking_id,
            )
        )

        if payment.id:
            await self.purchase_repository.attach_processor_ref(purchase.id, payment.id)

        updated = await self.coordinator.record_direct_charge_result(
            purchase.id, payment.status, payment.raw
        )

        license_key = None
        if updated.is_approved:
            seats = await self.license_repository.find_by_purchase(purchase.id)
            license_key = seats[0].license_key if seats else None

        logger.info(
            "Direct charge %s for purchase %s: %s",
            payment.id,
            purchase.id,
            updated.status.value,
            extra={"purchase_id": purchase.id, "status_detail": payment.status_detail},
        )
        return DirectChargeResultDTO(
            purchase_id=purchase.id,
            status=updated.status.value,
            processor_payment_id=payment.id or None,
            status_detail=payment.status_detail,
            license_key=license_key,
            qr_code=payment.qr_code,
            qr_code_base64=payment.qr_code_base64,
            ticket_url=payment.ticket_url,
        )


def _full_name(command: CreateDirectChargeCommand) -> Optional[str]:
    parts = [part for part in (command.payer_first_name, command.payer_last_name) if part]
    return " ".join(parts) or None
