"""
CreatePurchaseHandler.

Handles hosted checkout: free products are approved and provisioned on
the spot, paid products get a processor preference.
"""

import logging
import uuid
from dataclasses import replace
from typing import Optional

from core.domain.exceptions import (
    ProductNotAvailableError,
    ProductNotFoundError,
    UpstreamUnavailableError,
)
from core.infrastructure.events import event_bus
from core.metrics import purchases_created_total
from products.domain.product import Product
from products.ports.product_repository import ProductRepository
from purchases.application.commands.create_purchase import CreatePurchaseCommand
from purchases.application.dto.purchase_dto import CheckoutResultDTO
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.domain.events import PurchaseCreated
from purchases.domain.purchase import Purchase, PurchaseOrigin
from purchases.ports.payment_processor import PaymentProcessorClient, PreferenceRequest
from purchases.ports.purchase_repository import PurchaseRepository

logger = logging.getLogger(__name__)


async def load_purchasable_product(
    product_repository: ProductRepository, product_id: uuid.UUID
) -> Product:
    """
    Load a product that can be bought.

    Raises:
        ProductNotFoundError: If the product does not exist
        ProductNotAvailableError: If the product is not published
    """
    product = await product_repository.find_by_id(product_id)
    if not product:
        raise ProductNotFoundError(f"Product {product_id} not found")
    if not product.is_published:
        raise ProductNotAvailableError(f"Product {product.name} is not available for purchase")
    return product


async def record_purchase(
    purchase_repository: PurchaseRepository, purchase: Purchase, origin: PurchaseOrigin
) -> Purchase:
    """Save a new purchase and announce it."""
    saved = await purchase_repository.save(purchase)
    purchases_created_total.labels(origin=origin.value, status=saved.status.value).inc()
    await event_bus.publish(
        PurchaseCreated(
            purchase_id=saved.id,
            product_id=saved.product_id,
            status=saved.status.value,
            amount=saved.amount,
        )
    )
    logger.info(
        "Purchase %s recorded (%s, %s seat(s))",
        saved.id,
        saved.status.value,
        saved.quantity,
        extra={"purchase_id": saved.id, "product_id": str(saved.product_id)},
    )
    return saved


async def record_free_purchase(
    purchase_repository: PurchaseRepository,
    coordinator: ProvisioningCoordinator,
    product: Product,
    payer_email: str,
    quantity: int,
    payer_name: Optional[str] = None,
    owner_id: Optional[int] = None,
) -> CheckoutResultDTO:
    """Record a zero-priced purchase, born approved, and provision it."""
    purchase = Purchase.create(
        product_id=product.id,
        quantity=quantity,
        unit_price=product.price,
        payer_email=payer_email,
        payer_name=payer_name,
        owner_id=owner_id,
        origin=PurchaseOrigin.FREE,
        currency=product.currency,
    )
    saved = await record_purchase(purchase_repository, purchase, PurchaseOrigin.FREE)
    seats = await coordinator.provision_approved(saved)
    return CheckoutResultDTO(
        purchase_id=saved.id,
        status=saved.status.value,
        license_key=seats[0].license_key if seats else None,
    )


class CreatePurchaseHandler:
    """Handler for CreatePurchaseCommand."""

    def __init__(
        self,
        product_repository: ProductRepository,
        purchase_repository: PurchaseRepository,
        coordinator: ProvisioningCoordinator,
        processor_client: Optional[PaymentProcessorClient],
    ):
        """Initialize handler with repositories."""
        self.product_repository = product_repository
        self.purchase_repository = purchase_repository
        self.coordinator = coordinator
        self.processor_client = processor_client

    async def handle(self, command: CreatePurchaseCommand) -> CheckoutResultDTO:
        """
        Handle create purchase command.

        Args:
            command: CreatePurchaseCommand

        Returns:
            CheckoutResultDTO; paid purchases carry the checkout URLs

        Raises:
            ProductNotFoundError: If product not found
            ProductNotAvailableError: If product is not published
            UpstreamUnavailableError: If the processor is not configured or down
            PaymentProcessorError: If the processor rejects the preference
        """
        product = await load_purchasable_product(self.product_repository, command.product_id)

        if product.is_free:
            return await record_free_purchase(
                self.purchase_repository,
                self.coordinator,
                product,
                payer_email=command.payer_email,
                quantity=command.quantity,
                payer_name=command.payer_name,
                owner_id=command.owner_id,
            )

        if self.processor_client is None:
            raise UpstreamUnavailableError("Payment processor is not configured")

        # Validate before talking to the processor
        purchase = Purchase.create(
            product_id=product.id,
            quantity=command.quantity,
            unit_price=product.price,
            payer_email=command.payer_email,
            payer_name=command.payer_name,
            owner_id=command.owner_id,
            origin=PurchaseOrigin.CHECKOUT,
            currency=product.currency,
        )
        preference = await self.processor_client.create_preference(
            PreferenceRequest(
                external_reference=purchase.id,
                item_id=str(product.id),
                title=product.name,
                quantity=purchase.quantity,
                unit_price=purchase.unit_price,
                currency=purchase.currency,
                payer_email=purchase.payer_email,
                payer_name=purchase.payer_name,
                description=f"{product.name} {product.version}" if product.version else product.name,
            )
        )

        saved = await record_purchase(
            self.purchase_repository,
            replace(purchase, processor_ref=preference.id),
            PurchaseOrigin.CHECKOUT,
        )
        return CheckoutResultDTO(
            purchase_id=saved.id,
            status=saved.status.value,
            preference_id=preference.id,
            init_point=preference.init_point,
            sandbox_init_point=preference.sandbox_init_point,
        )
