"""
Activation domain services.

Domain services contain business logic that doesn't naturally
fit within a single entity.
"""

import logging
import uuid
from typing import Optional, Tuple

from core.domain.exceptions import (
    DeviceConflictError,
    DeviceQuotaExceededError,
    NoEntitlementError,
)
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository
from purchases.ports.purchase_repository import PurchaseRepository

logger = logging.getLogger(__name__)

MAX_DEVICES_PER_LICENSE = 3

# Free slots tried before falling back to a new row
MAX_SLOT_ATTEMPTS = 3


class SlotAllocator:
    """
    Domain service that binds devices to license seats.

    Quota is per purchased unit: every approved seat allows
    MAX_DEVICES_PER_LICENSE bound devices for the product and email.
    """

    @staticmethod
    def quota_for(approved_units: int) -> int:
        """
        Number of devices allowed for a number of approved seats.

        Args:
            approved_units: Sum of quantities of approved purchases

        Returns:
            Device quota
        """
        return MAX_DEVICES_PER_LICENSE * approved_units

    @staticmethod
    async def allocate(
        product_id: uuid.UUID,
        email: str,
        hardware_id: str,
        license_repository: LicenseRepository,
        purchase_repository: PurchaseRepository,
        owner_id: Optional[int] = None,
    ) -> Tuple[License, bool]:
        """
        Bind a device to a license of the product.

        Args:
            product_id: Product UUID
            email: Holder email (normalized)
            hardware_id: Device identifier
            license_repository: License repository
            purchase_repository: Purchase repository
            owner_id: Optional account id, used for a fallback row

        Returns:
            Tuple of (license, already_activated)

        Raises:
            NoEntitlementError: If the email has no approved purchase
            DeviceQuotaExceededError: If every allowed device is bound
        """
        # Replay of an earlier activation of the same device
        existing = await license_repository.find_bound_exact(product_id, email, hardware_id)
        if existing:
            return existing, True

        if await purchase_repository.count_approved(product_id, email) == 0:
            raise NoEntitlementError()

        units = await purchase_repository.sum_approved_units(product_id, email)
        quota = SlotAllocator.quota_for(units)
        bound = await license_repository.count_bound(product_id, email)
        if bound >= quota:
            raise DeviceQuotaExceededError(
                f"Device limit reached ({bound}/{quota}) for this product"
            )

        try:
            license = await SlotAllocator._bind_device(
                product_id, email, hardware_id, license_repository, owner_id
            )
        except DeviceConflictError:
            # The same device was bound by a concurrent request
            existing = await license_repository.find_bound_exact(product_id, email, hardware_id)
            if existing:
                return existing, True
            raise
        return license, False

    @staticmethod
    async def _bind_device(
        product_id: uuid.UUID,
        email: str,
        hardware_id: str,
        license_repository: LicenseRepository,
        owner_id: Optional[int],
    ) -> License:
        for _ in range(MAX_SLOT_ATTEMPTS):
            slot = await license_repository.find_unbound_slot(product_id, email)
            if slot is None:
                break
            license = await license_repository.bind(slot.id, hardware_id, only_if_unbound=True)
            if license is not None:
                return license

        logger.info(
            "No free slot for product %s, creating a bound license",
            product_id,
            extra={"product_id": str(product_id)},
        )
        return await license_repository.save(
            License.create(
                product_id=product_id,
                email=email,
                owner_id=owner_id,
                hardware_id=hardware_id,
            )
        )
