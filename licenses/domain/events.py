"""
License domain events.

Domain events represent something that happened in the license domain.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent


class LicenseSeatsMaterialized(DomainEvent):
    """Event raised when an approved purchase had its seats created."""

    def __init__(
        self,
        purchase_id: str,
        product_id: uuid.UUID,
        email: str,
        seats: int,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseSeatsMaterialized event.

        Args:
            purchase_id: Purchase that was provisioned
            product_id: Product UUID
            email: Holder email
            seats: Number of License rows created
            occurred_at: When the event occurred
        """
        super().__init__(aggregate_id=purchase_id, occurred_at=occurred_at)
        self.purchase_id = purchase_id
        self.product_id = product_id
        self.email = email
        self.seats = seats

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update(product_id=str(self.product_id), seats=self.seats)
        return data


class LicenseReleased(DomainEvent):
    """Event raised when a device is unbound from a license."""

    def __init__(
        self,
        license_id: int,
        product_id: uuid.UUID,
        email: str,
        hardware_id: Optional[str],
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(aggregate_id=str(license_id), occurred_at=occurred_at)
        self.license_id = license_id
        self.product_id = product_id
        self.email = email
        self.hardware_id = hardware_id
