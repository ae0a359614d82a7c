"""
Event handlers for domain events.

These handlers process domain events for side effects
like audit logging and the downstream invoice and email notifications.
"""

import logging

from activations.domain.events import DeviceActivated
from core.domain.events import DomainEvent, EventHandler
from core.metrics import notification_failures_total
from licenses.domain.events import LicenseReleased, LicenseSeatsMaterialized
from purchases.domain.events import (
    GuestAccountMerged,
    PurchaseApproved,
    PurchaseCreated,
    PurchaseStatusChanged,
)

logger = logging.getLogger(__name__)


class AuditLogEventHandler(EventHandler):
    """
    Event handler for audit logging.

    Emits one structured log line per domain event.
    """

    async def handle(self, event: DomainEvent) -> None:
        """
        Handle domain event for audit logging.

        Args:
            event: Domain event to log
        """
        logger.info(
            "Audit log: %s - %s",
            event.event_type,
            event.aggregate_id,
            extra={
                "event_id": str(event.event_id),
                "event_type": event.event_type,
                "aggregate_id": event.aggregate_id,
                "occurred_at": event.occurred_at.isoformat(),
            },
        )


class InvoiceRequestHandler(EventHandler):
    """
    Queues invoice generation for approved paid purchases.

    Failures are logged and counted; they never reach the publisher.
    """

    async def handle(self, event: PurchaseApproved) -> None:
        """
        Handle PurchaseApproved.

        Args:
            event: PurchaseApproved event
        """
        from core.tasks import generate_invoice_task

        if not event.is_paid:
            logger.debug("Purchase %s is free, no invoice requested", event.purchase_id)
            return

        try:
            generate_invoice_task.delay(event.invoice_payload())
        except Exception as e:
            notification_failures_total.labels(channel="invoice").inc()
            logger.error(
                "Could not queue invoice for purchase %s: %s",
                event.purchase_id,
                e,
                exc_info=True,
            )


class PurchaseConfirmationHandler(EventHandler):
    """
    Queues the purchase confirmation email.

    Failures are logged and counted; they never reach the publisher.
    """

    async def handle(self, event: PurchaseApproved) -> None:
        """
        Handle PurchaseApproved.

        Args:
            event: PurchaseApproved event
        """
        from core.tasks import send_purchase_confirmation_task

        try:
            send_purchase_confirmation_task.delay(event.confirmation_payload())
        except Exception as e:
            notification_failures_total.labels(channel="email").inc()
            logger.error(
                "Could not queue confirmation email for purchase %s: %s",
                event.purchase_id,
                e,
                exc_info=True,
            )


def register_event_handlers(bus=None):
    """Register all event handlers with the event bus."""
    if bus is None:
        from core.infrastructure.events import event_bus as bus

    audit_handler = AuditLogEventHandler()

    for event_type in (
        PurchaseCreated,
        PurchaseStatusChanged,
        PurchaseApproved,
        LicenseSeatsMaterialized,
        LicenseReleased,
        DeviceActivated,
        GuestAccountMerged,
    ):
        bus.subscribe(event_type, audit_handler)

    bus.subscribe(PurchaseApproved, InvoiceRequestHandler())
    bus.subscribe(PurchaseApproved, PurchaseConfirmationHandler())

    logger.info("Event handlers registered")
