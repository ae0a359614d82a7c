"""
Provisioning coordinator.

Both completion channels end here: the webhook handler after it fetched
the payment from the processor, and the direct-charge handler with the
status the charge call returned. The coordinator is the only writer of
a purchase's status and the only place where License seats are created.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from core.domain.events import EventBus
from core.domain.exceptions import ProvisioningConflictError, PurchaseNotFoundError
from core.infrastructure.events import event_bus
from core.metrics import (
    licenses_materialized_total,
    notification_failures_total,
    purchase_status_transitions_total,
    purchase_transitions_skipped_total,
)
from licenses.domain.events import LicenseSeatsMaterialized
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository
from products.ports.artifact_locator import ArtifactLocator
from products.ports.product_repository import ProductRepository
from purchases.application.dto.purchase_dto import ProvisioningResultDTO
from purchases.domain.events import PurchaseApproved, PurchaseStatusChanged
from purchases.domain.purchase import Purchase, PurchaseStatus
from purchases.domain.services import StatusTransitionPolicy
from purchases.ports.payment_processor import ProcessorPayment
from purchases.ports.purchase_repository import PurchaseRepository

logger = logging.getLogger(__name__)

REASON_CONCURRENT = "concurrent update"
REASON_NOT_FOUND = "purchase not found"


class ProvisioningCoordinator:
    """
    Applies completion signals to purchases and materializes seats.

    Races between the two channels are settled in three places: the
    status write is a compare-and-set on the status that was read, seat
    creation is skipped when the purchase already has seats, and the
    store rejects a second set of seats for the same purchase.
    """

    def __init__(
        self,
        purchase_repository: PurchaseRepository,
        license_repository: LicenseRepository,
        product_repository: ProductRepository,
        artifact_locator: Optional[ArtifactLocator] = None,
        bus: Optional[EventBus] = None,
    ):
        """Initialize coordinator with repositories."""
        self.purchase_repository = purchase_repository
        self.license_repository = license_repository
        self.product_repository = product_repository
        self.artifact_locator = artifact_locator
        self.bus = bus or event_bus

    async def apply_status(
        self,
        purchase: Purchase,
        new_status: PurchaseStatus,
        raw_payload: Optional[str] = None,
        source: str = "webhook",
    ) -> ProvisioningResultDTO:
        """
        Move a purchase to a canonical status.

        Args:
            purchase: Purchase as last read by the caller
            new_status: Canonical status reported by the completion signal
            raw_payload: Opaque processor payload stored with the status
            source: Completion channel, for logs

        Returns:
            ProvisioningResultDTO
        """
        old_status = purchase.status
        decision = StatusTransitionPolicy.evaluate(old_status, new_status)
        if not decision.apply:
            purchase_transitions_skipped_total.labels(reason=decision.reason).inc()
            logger.info(
                "Purchase %s: %s (%s -> %s)",
                purchase.id,
                decision.reason,
                old_status.value,
                new_status.value,
                extra={"purchase_id": purchase.id, "source": source},
            )
            return ProvisioningResultDTO(
                processed=True,
                changed=False,
                purchase_id=purchase.id,
                old_status=old_status.value,
                new_status=old_status.value,
                reason=decision.reason,
            )

        updated = await self.purchase_repository.transition_status(
            purchase.id, new_status, raw_payload, expected_status=old_status
        )
        if updated is None:
            current = await self.purchase_repository.find_by_id(purchase.id)
            purchase_transitions_skipped_total.labels(reason=REASON_CONCURRENT).inc()
            logger.info(
                "Purchase %s changed concurrently, %s signal discarded",
                purchase.id,
                source,
                extra={"purchase_id": purchase.id, "source": source},
            )
            return ProvisioningResultDTO(
                processed=True,
                changed=False,
                purchase_id=purchase.id,
                old_status=old_status.value,
                new_status=current.status.value if current else None,
                reason=REASON_CONCURRENT,
            )

        purchase_status_transitions_total.labels(
            old_status=old_status.value, new_status=new_status.value
        ).inc()
        logger.info(
            "Purchase %s: %s -> %s via %s",
            purchase.id,
            old_status.value,
            new_status.value,
            source,
            extra={"purchase_id": purchase.id, "source": source},
        )
        await self.bus.publish(
            PurchaseStatusChanged(
                purchase_id=purchase.id,
                old_status=old_status.value,
                new_status=new_status.value,
            )
        )

        licenses_created = 0
        if decision.materialize:
            licenses_created = len(await self.provision_approved(updated))

        return ProvisioningResultDTO(
            processed=True,
            changed=True,
            purchase_id=purchase.id,
            old_status=old_status.value,
            new_status=new_status.value,
            licenses_created=licenses_created,
        )

    async def apply_processor_payment(self, payment: ProcessorPayment) -> ProvisioningResultDTO:
        """
        Apply a payment fetched from the processor (webhook channel).

        The purchase is looked up by processor reference first, then by the
        external reference, which carries our purchase id.

        Args:
            payment: Payment as reported by the processor

        Returns:
            ProvisioningResultDTO
        """
        purchase = await self.purchase_repository.find_by_processor_ref(payment.id)
        if purchase is None and payment.external_reference:
            purchase = await self.purchase_repository.find_by_id(payment.external_reference)
        if purchase is None:
            logger.warning(
                "No purchase for processor payment %s (external reference %s)",
                payment.id,
                payment.external_reference,
            )
            return ProvisioningResultDTO(processed=False, reason=REASON_NOT_FOUND)

        return await self.apply_status(
            purchase,
            PurchaseStatus.from_processor(payment.status),
            raw_payload=_dump(payment.raw),
            source="webhook",
        )

    async def record_direct_charge_result(
        self,
        purchase_id: str,
        processor_status: Optional[str],
        raw_payload: Optional[Dict[str, Any]] = None,
    ) -> Purchase:
        """
        Apply the status returned by a direct charge call.

        Args:
            purchase_id: Purchase id
            processor_status: Native status string from the processor
            raw_payload: Processor response body

        Returns:
            The purchase as stored afterwards

        Raises:
            PurchaseNotFoundError: If the purchase does not exist
        """
        purchase = await self.purchase_repository.find_by_id(purchase_id)
        if purchase is None:
            raise PurchaseNotFoundError(f"Purchase {purchase_id} not found")

        await self.apply_status(
            purchase,
            PurchaseStatus.from_processor(processor_status),
            raw_payload=_dump(raw_payload),
            source="direct_charge",
        )
        return await self.purchase_repository.find_by_id(purchase_id)

    async def provision_approved(self, purchase: Purchase) -> List[License]:
        """
        Create the seats of an approved purchase, at most once.

        Free purchases are born approved and come here directly.

        Args:
            purchase: Approved purchase

        Returns:
            Seats created by this call (empty if another caller did it)
        """
        if not purchase.is_approved:
            return []

        if await self.license_repository.exists_for_purchase(purchase.id):
            logger.info("Purchase %s already provisioned", purchase.id)
            return []

        try:
            seats = await self.license_repository.create_seats(
                purchase_id=purchase.id,
                product_id=purchase.product_id,
                email=purchase.payer_email,
                quantity=purchase.quantity,
                owner_id=purchase.owner_id,
            )
        except ProvisioningConflictError:
            logger.info(
                "Purchase %s provisioned concurrently, duplicate discarded", purchase.id
            )
            return []

        licenses_materialized_total.labels(product_id=str(purchase.product_id)).inc(len(seats))
        logger.info(
            "Materialized %d seat(s) for purchase %s",
            len(seats),
            purchase.id,
            extra={"purchase_id": purchase.id, "product_id": str(purchase.product_id)},
        )
        await self.bus.publish(
            LicenseSeatsMaterialized(
                purchase_id=purchase.id,
                product_id=purchase.product_id,
                email=purchase.payer_email,
                seats=len(seats),
            )
        )
        await self._announce(purchase, seats)
        return seats

    async def _announce(self, purchase: Purchase, seats: List[License]) -> None:
        """Publish PurchaseApproved; failures never undo provisioning."""
        try:
            product = await self.product_repository.find_by_id(purchase.product_id)
            download_reference = None
            if self.artifact_locator is not None:
                download_reference = await self.artifact_locator.resolve(purchase.product_id)
            await self.bus.publish(
                PurchaseApproved(
                    purchase_id=purchase.id,
                    product_id=purchase.product_id,
                    product_name=product.name if product else "",
                    product_version=product.version if product else None,
                    amount=purchase.amount,
                    payer_email=purchase.payer_email,
                    payer_name=purchase.payer_name,
                    payer_document=purchase.payer_document,
                    license_key=seats[0].license_key if seats else None,
                    download_reference=download_reference,
                )
            )
        except Exception as e:
            notification_failures_total.labels(channel="event").inc()
            logger.error(
                "Could not announce approval of purchase %s: %s",
                purchase.id,
                e,
                exc_info=True,
            )


def _dump(payload: Optional[Dict[str, Any]]) -> Optional[str]:
    if payload is None:
        return None
    return json.dumps(payload, default=str)
