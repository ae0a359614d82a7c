"""
License domain entity.

A License is one seat of a product held by an email address. While its
hardware id is empty the seat is a free slot; binding it to a device
records the hardware id and the activation time.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Optional

from core.domain.value_objects import Email, HardwareId
from licenses.domain.license_key import generate_license_key


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    ``id`` is assigned by the store and is None until the row is saved.
    """

    id: Optional[int]
    product_id: uuid.UUID
    email: str
    owner_id: Optional[int]
    hardware_id: Optional[str]
    license_key: str
    activated_at: Optional[datetime]
    purchase_id: Optional[str]
    seat_index: Optional[int]
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate license entity."""
        if not self.product_id:
            raise ValueError("Product ID is required")
        if not self.license_key:
            raise ValueError("License key is required")
        if self.seat_index is not None and self.seat_index < 0:
            raise ValueError("Seat index cannot be negative")

    @classmethod
    def create(
        cls,
        product_id: uuid.UUID,
        email: str,
        owner_id: Optional[int] = None,
        hardware_id: Optional[str] = None,
        purchase_id: Optional[str] = None,
        seat_index: Optional[int] = None,
    ) -> "License":
        """
        Create a new License entity with a fresh key.

        If a hardware id is given the license is born bound to it.

        Args:
            product_id: Product UUID
            email: Holder email
            owner_id: Optional account id of the holder
            hardware_id: Optional device to bind immediately
            purchase_id: Purchase that materialized this seat
            seat_index: Seat number within that purchase

        Returns:
            License entity instance
        """
        now = datetime.now(timezone.utc)
        bound = HardwareId(hardware_id).value if hardware_id else None
        return cls(
            id=None,
            product_id=product_id,
            email=Email(email).value,
            owner_id=owner_id,
            hardware_id=bound,
            license_key=generate_license_key(),
            activated_at=now if bound else None,
            purchase_id=purchase_id,
            seat_index=seat_index,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_bound(self) -> bool:
        """A null or empty hardware id means the seat is free."""
        return bool(self.hardware_id)

    def bind(self, hardware_id: str) -> "License":
        """
        Create a new License instance bound to a device.

        Args:
            hardware_id: Device identifier

        Returns:
            New License instance
        """
        now = datetime.now(timezone.utc)
        return replace(
            self,
            hardware_id=HardwareId(hardware_id).value,
            activated_at=now,
            updated_at=now,
        )

    def unbind(self) -> "License":
        """Create a new License instance with the slot freed."""
        return replace(
            self,
            hardware_id=None,
            activated_at=None,
            updated_at=datetime.now(timezone.utc),
        )
