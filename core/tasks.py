"""
Celery tasks for background processing.

Tasks for the invoice and email notifications sent after a purchase is approved.
"""
import logging

import requests

from core.infrastructure.notifications import (
    InvoiceRequest,
    InvoiceServiceClient,
    PurchaseConfirmation,
    PurchaseEmailNotifier,
)
from core.metrics import notification_failures_total
from EntitlementService.celery import app

logger = logging.getLogger(__name__)


@app.task(bind=True, max_retries=3)
def generate_invoice_task(self, payload: dict):
    """
    Celery task for invoice generation.

    Args:
        payload: InvoiceRequest fields
    """
    invoice = InvoiceRequest(**payload)
    try:
        InvoiceServiceClient().request_invoice(invoice)
    except requests.exceptions.RequestException as exc:
        if self.request.retries >= self.max_retries:
            notification_failures_total.labels(channel="invoice").inc()
            logger.error(
                "Invoice generation failed for purchase %s after %d retries: %s",
                invoice.purchase_id,
                self.max_retries,
                exc,
            )
            return
        logger.warning("Invoice generation failed for purchase %s: %s", invoice.purchase_id, exc)
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)


@app.task(bind=True, max_retries=3)
def send_purchase_confirmation_task(self, payload: dict):
    """
    Celery task for the purchase confirmation email.

    Args:
        payload: PurchaseConfirmation fields
    """
    confirmation = PurchaseConfirmation(**payload)
    try:
        PurchaseEmailNotifier().send_confirmation(confirmation)
    except Exception as exc:
        if self.request.retries >= self.max_retries:
            notification_failures_total.labels(channel="email").inc()
            logger.error(
                "Confirmation email failed for purchase %s after %d retries: %s",
                confirmation.purchase_id,
                self.max_retries,
                exc,
            )
            return
        logger.warning(
            "Confirmation email failed for purchase %s: %s", confirmation.purchase_id, exc
        )
        raise self.retry(exc=exc, countdown=2 ** self.request.retries)
