"""
Activation domain events.

Domain events represent something that happened in the activation domain.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent


class DeviceActivated(DomainEvent):
    """Event raised when a device is bound to a license."""

    def __init__(
        self,
        license_id: int,
        product_id: uuid.UUID,
        email: str,
        hardware_id: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize DeviceActivated event.

        Args:
            license_id: License the device was bound to
            product_id: Product UUID
            email: Holder email
            hardware_id: Device identifier
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=str(license_id), occurred_at=occurred_at)
        self.license_id = license_id
        self.product_id = product_id
        self.email = email
        self.hardware_id = hardware_id

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(product_id=str(self.product_id), hardware_id=self.hardware_id)
        return data
