"""
ReceiveWebhookHandler.

Handles payment notifications from the processor. The notification only
says "payment X changed"; the handler authenticates it, fetches the
payment and hands it to the provisioning coordinator.
"""

import logging
from typing import Any, Dict, Optional

from core.domain.exceptions import (
    DomainException,
    PaymentProcessorError,
    UpstreamUnavailableError,
    WebhookSignatureError,
)
from core.metrics import webhook_deliveries_total
from purchases.application.commands.receive_webhook import ReceiveWebhookCommand
from purchases.application.dto.purchase_dto import ProvisioningResultDTO
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.application.services.webhook_authenticator import WebhookAuthenticator
from purchases.ports.payment_processor import PaymentProcessorClient

logger = logging.getLogger(__name__)

PAYMENT_TOPIC = "payment"


def extract_notification(command: ReceiveWebhookCommand) -> tuple[Optional[str], Optional[str]]:
    """
    Read the topic and data id of a notification.

    The body is authoritative; the query string (``?type=payment&data.id=``)
    is used when the body does not carry them.

    Returns:
        Tuple of (topic, data_id)
    """
    body: Dict[str, Any] = command.body if isinstance(command.body, dict) else {}
    data = body.get("data") if isinstance(body.get("data"), dict) else {}

    topic = (
        body.get("type")
        or body.get("topic")
        or command.query.get("type")
        or command.query.get("topic")
    )
    data_id = data.get("id") or command.query.get("data.id") or command.query.get("id")
    return topic, str(data_id) if data_id is not None else None


class ReceiveWebhookHandler:
    """Handler for ReceiveWebhookCommand."""

    def __init__(
        self,
        coordinator: ProvisioningCoordinator,
        processor_client: Optional[PaymentProcessorClient],
        authenticator: WebhookAuthenticator,
    ):
        """Initialize handler with collaborators."""
        self.coordinator = coordinator
        self.processor_client = processor_client
        self.authenticator = authenticator

    async def handle(self, command: ReceiveWebhookCommand) -> ProvisioningResultDTO:
        """
        Handle one webhook delivery.

        Only authentication failures propagate. Anything that goes wrong
        after that is logged and reported as ``processed=False`` so the
        processor does not keep retrying a delivery we already saw.

        Args:
            command: ReceiveWebhookCommand

        Returns:
            ProvisioningResultDTO

        Raises:
            WebhookSignatureError: If the signature is missing or invalid
        """
        topic, data_id = extract_notification(command)

        try:
            self.authenticator.authenticate(command.headers, data_id)
        except WebhookSignatureError:
            webhook_deliveries_total.labels(outcome="rejected").inc()
            raise

        if topic != PAYMENT_TOPIC or not data_id:
            webhook_deliveries_total.labels(outcome="ignored").inc()
            logger.info("Ignoring webhook topic %s (data id %s)", topic, data_id)
            return ProvisioningResultDTO(processed=False, reason=f"ignored topic {topic}")

        if self.processor_client is None:
            webhook_deliveries_total.labels(outcome="failed").inc()
            logger.error("Webhook for payment %s received but no processor is configured", data_id)
            return ProvisioningResultDTO(processed=False, reason="payment processor not configured")

        try:
            payment = await self.processor_client.get_payment(data_id)
        except (UpstreamUnavailableError, PaymentProcessorError) as e:
            webhook_deliveries_total.labels(outcome="failed").inc()
            logger.error("Could not fetch payment %s: %s", data_id, e.message)
            return ProvisioningResultDTO(processed=False, reason="payment lookup failed")

        if payment is None:
            webhook_deliveries_total.labels(outcome="failed").inc()
            logger.warning("Payment %s unknown to the processor", data_id)
            return ProvisioningResultDTO(processed=False, reason="payment not found at processor")

        try:
            result = await self.coordinator.apply_processor_payment(payment)
        except DomainException as e:
            webhook_deliveries_total.labels(outcome="failed").inc()
            logger.error("Webhook for payment %s failed: %s", data_id, e.message, exc_info=True)
            return ProvisioningResultDTO(processed=False, reason=e.code)

        webhook_deliveries_total.labels(
            outcome="processed" if result.processed else "failed"
        ).inc()
        return result
