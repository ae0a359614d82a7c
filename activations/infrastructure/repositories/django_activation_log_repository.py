"""
Django implementation of ActivationLogRepository port.

This adapter converts between domain entities and Django ORM models.
"""
import uuid
from typing import List

from asgiref.sync import sync_to_async

from activations.domain.activation_log import (
    ActivationAction,
    ActivationLogEntry,
    ActivationOutcome,
)
from activations.infrastructure.models import ActivationLogEntry as ActivationLogModel
from activations.ports.activation_log_repository import ActivationLogRepository


class DjangoActivationLogRepository(ActivationLogRepository):
    """Django ORM implementation of ActivationLogRepository."""

    def _to_domain(self, model: ActivationLogModel) -> ActivationLogEntry:
        """
        Convert Django model to domain entity.

        Args:
            model: Django ActivationLogEntry model

        Returns:
            ActivationLogEntry domain entity
        """
        return ActivationLogEntry(
            id=model.id,
            product_id=model.product_id,
            email=model.email,
            hardware_id=model.hardware_id,
            license_id=model.license_id,
            action=ActivationAction(model.action),
            status=ActivationOutcome(model.status),
            message=model.message,
            ip=model.ip,
            user_agent=model.user_agent,
            created_at=model.created_at,
        )

    @sync_to_async
    def append(self, entry: ActivationLogEntry) -> ActivationLogEntry:
        """
        Append an entry to the log.

        Args:
            entry: ActivationLogEntry to store

        Returns:
            Stored entry
        """
        model = ActivationLogModel.objects.create(
            product_id=entry.product_id,
            email=entry.email,
            hardware_id=entry.hardware_id,
            license_id=entry.license_id,
            action=entry.action.value,
            status=entry.status.value,
            message=entry.message[:255],
            ip=entry.ip or None,
            user_agent=entry.user_agent[:255] if entry.user_agent else None,
        )
        return self._to_domain(model)

    @sync_to_async
    def find_by_product_and_email(
        self, product_id: uuid.UUID, email: str, limit: int = 100
    ) -> List[ActivationLogEntry]:
        models = ActivationLogModel.objects.filter(product_id=product_id, email=email).order_by(
            "-created_at", "-id"
        )[:limit]
        return [self._to_domain(model) for model in models]
