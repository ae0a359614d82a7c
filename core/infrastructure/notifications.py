"""
Downstream notification collaborators.

Adapters for the invoice service and the purchase confirmation email.
Both are invoked from Celery tasks once a purchase has been approved.
"""
import json
import logging
from dataclasses import asdict, dataclass
from typing import Optional

import requests
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


@dataclass
class InvoiceRequest:
    """Payload sent to the invoice service."""

    purchase_id: str
    product_id: str
    product_name: str
    amount: str
    payer_email: str
    payer_name: Optional[str] = None
    payer_document: Optional[str] = None


@dataclass
class PurchaseConfirmation:
    """Payload for the purchase confirmation email."""

    recipient: str
    product_name: str
    purchase_id: str
    amount: str
    download_reference: Optional[str] = None
    product_version: Optional[str] = None
    license_key: Optional[str] = None


class InvoiceServiceClient:
    """HTTP client for the external invoice/tax-document service."""

    def __init__(self, url: Optional[str] = None, token: Optional[str] = None, timeout: int = 10):
        """
        Initialize client.

        Args:
            url: Invoice service endpoint (defaults to settings.INVOICE_SERVICE_URL)
            token: Bearer token (defaults to settings.INVOICE_SERVICE_TOKEN)
            timeout: Request timeout in seconds
        """
        self.url = url if url is not None else getattr(settings, "INVOICE_SERVICE_URL", "")
        self.token = token if token is not None else getattr(settings, "INVOICE_SERVICE_TOKEN", "")
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        """Whether an endpoint is configured."""
        return bool(self.url)

    def request_invoice(self, invoice: InvoiceRequest) -> bool:
        """
        Ask the invoice service to issue a tax document.

        Args:
            invoice: Invoice payload

        Returns:
            True if the request was sent, False if the client is not configured

        Raises:
            requests.exceptions.RequestException: If delivery fails
        """
        if not self.is_configured:
            logger.info(
                "Invoice service not configured, skipping invoice for purchase %s",
                invoice.purchase_id,
            )
            return False

        headers = {
            "Content-Type": "application/json",
            "User-Agent": "Entitlement-Service/1.0",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        response = requests.post(
            self.url,
            data=json.dumps(asdict(invoice), sort_keys=True),
            headers=headers,
            timeout=self.timeout,
        )
        response.raise_for_status()

        logger.info("Invoice requested for purchase %s", invoice.purchase_id)
        return True


class PurchaseEmailNotifier:
    """Sends purchase confirmation emails through Django's mail framework."""

    subject_template = "Your purchase of {product_name} is confirmed"

    def send_confirmation(self, confirmation: PurchaseConfirmation) -> None:
        """
        Send the confirmation email.

        Args:
            confirmation: Confirmation payload
        """
        product_label = confirmation.product_name
        if confirmation.product_version:
            product_label = f"{product_label} {confirmation.product_version}"

        lines = [
            f"Thank you for purchasing {product_label}.",
            "",
            f"Purchase: {confirmation.purchase_id}",
            f"Amount: {confirmation.amount}",
        ]
        if confirmation.license_key:
            lines.append(f"License key: {confirmation.license_key}")
        if confirmation.download_reference:
            lines.append(f"Download: {confirmation.download_reference}")

        send_mail(
            subject=self.subject_template.format(product_name=confirmation.product_name),
            message="\n".join(lines),
            from_email=getattr(settings, "DEFAULT_FROM_EMAIL", None),
            recipient_list=[confirmation.recipient],
            fail_silently=False,
        )
        logger.info(
            "Purchase confirmation sent for purchase %s", confirmation.purchase_id
        )
