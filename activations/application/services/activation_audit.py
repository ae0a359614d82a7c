"""
Activation audit.

Writes the activation log entry for an attempt and counts its outcome.
"""

import logging
import uuid
from typing import Optional

from activations.domain.activation_log import (
    ActivationAction,
    ActivationLogEntry,
    ActivationOutcome,
)
from activations.ports.activation_log_repository import ActivationLogRepository
from core.metrics import device_activations_total

logger = logging.getLogger(__name__)


class ActivationAuditor:
    """Records one log entry per activation, verification or release attempt."""

    def __init__(self, log_repository: ActivationLogRepository):
        self.log_repository = log_repository

    async def record(
        self,
        action: ActivationAction,
        status: ActivationOutcome,
        message: str,
        product_id: Optional[uuid.UUID],
        email: str,
        hardware_id: str,
        license_id: Optional[int] = None,
        ip: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> ActivationLogEntry:
        entry = await self.log_repository.append(
            ActivationLogEntry.create(
                product_id=product_id,
                email=email,
                hardware_id=hardware_id,
                action=action,
                status=status,
                message=message,
                license_id=license_id,
                ip=ip,
                user_agent=user_agent,
            )
        )
        device_activations_total.labels(action=action.value, outcome=status.value).inc()
        logger.info(
            "%s %s: %s",
            action.value,
            status.value,
            message,
            extra={
                "product_id": str(product_id) if product_id else None,
                "hardware_id": hardware_id,
                "license_id": license_id,
            },
        )
        return entry
