"""
License repository port (interface).

This defines the contract for license persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import uuid

from licenses.domain.license import License


class LicenseRepository(ABC):
    """
    Abstract repository for License entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, license: License) -> License:
        """
        Save a license entity.

        Args:
            license: License entity to save

        Returns:
            Saved license entity (with its id assigned)

        Raises:
            DeviceConflictError: If the device is already bound for
                this product and email
        """
        pass

    @abstractmethod
    async def find_by_id(self, license_id: int) -> Optional[License]:
        """
        Find a license by ID.

        Args:
            license_id: License id

        Returns:
            License entity or None if not found
        """
        pass

    @abstractmethod
    async def find_bound_exact(
        self, product_id: uuid.UUID, email: str, hardware_id: str
    ) -> Optional[License]:
        """
        Find the license bound to a device.

        Args:
            product_id: Product UUID
            email: Holder email
            hardware_id: Device identifier

        Returns:
            License entity or None if the device is not bound
        """
        pass

    @abstractmethod
    async def find_unbound_slot(self, product_id: uuid.UUID, email: str) -> Optional[License]:
        """
        Find a free seat, oldest first.

        A null or empty hardware id both count as unbound.

        Args:
            product_id: Product UUID
            email: Holder email

        Returns:
            License entity or None if every seat is bound
        """
        pass

    @abstractmethod
    async def bind(
        self, license_id: int, hardware_id: str, only_if_unbound: bool = False
    ) -> Optional[License]:
        """
        Bind a license to a device.

        Args:
            license_id: License id
            hardware_id: Device identifier
            only_if_unbound: Only write if the slot is still free

        Returns:
            Updated License, or None if ``only_if_unbound`` was set and
            another device took the slot first

        Raises:
            LicenseNotFoundError: If the license does not exist
            DeviceConflictError: If the device is already bound for
                this product and email
        """
        pass

    @abstractmethod
    async def unbind(self, license_id: int) -> License:
        """
        Free a license's slot.

        Args:
            license_id: License id

        Returns:
            Updated License entity

        Raises:
            LicenseNotFoundError: If the license does not exist
        """
        pass

    @abstractmethod
    async def count_bound(self, product_id: uuid.UUID, email: str) -> int:
        """
        Count licenses bound to a device.

        Args:
            product_id: Product UUID
            email: Holder email

        Returns:
            Number of licenses with a non-empty hardware id
        """
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> List[License]:
        """
        Find all licenses held by an email, newest first.

        Args:
            email: Holder email

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def find_by_purchase(self, purchase_id: str) -> List[License]:
        """
        Find the seats materialized by a purchase, by seat index.

        Args:
            purchase_id: Purchase id

        Returns:
            List of License entities
        """
        pass

    @abstractmethod
    async def exists_for_purchase(self, purchase_id: str) -> bool:
        """
        Check if a purchase already has seats.

        Args:
            purchase_id: Purchase id

        Returns:
            True if at least one License references the purchase
        """
        pass

    @abstractmethod
    async def create_seats(
        self,
        purchase_id: str,
        product_id: uuid.UUID,
        email: str,
        quantity: int,
        owner_id: Optional[int] = None,
    ) -> List[License]:
        """
        Create one unbound License per purchased unit, in one transaction.

        Args:
            purchase_id: Purchase id
            product_id: Product UUID
            email: Holder email
            quantity: Number of seats
            owner_id: Optional account id of the holder

        Returns:
            The created License entities, by seat index

        Raises:
            ProvisioningConflictError: If the purchase already has seats
        """
        pass
