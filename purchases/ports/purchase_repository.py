"""
Purchase repository port (interface).

This defines the contract for purchase ledger persistence operations.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
import uuid

from purchases.domain.purchase import Purchase, PurchaseStatus


class PurchaseRepository(ABC):
    """
    Abstract repository for Purchase entities.

    This is a port in hexagonal architecture - it defines
    what operations are available, not how they're implemented.
    """

    @abstractmethod
    async def save(self, purchase: Purchase) -> Purchase:
        """
        Save a purchase entity.

        Args:
            purchase: Purchase entity to save

        Returns:
            Saved purchase entity
        """
        pass

    @abstractmethod
    async def find_by_id(self, purchase_id: str) -> Optional[Purchase]:
        """
        Find a purchase by its internal id.

        Args:
            purchase_id: Purchase id

        Returns:
            Purchase entity or None if not found
        """
        pass

    @abstractmethod
    async def find_by_processor_ref(self, processor_ref: str) -> Optional[Purchase]:
        """
        Find a purchase by the processor's preference or charge id.

        Args:
            processor_ref: Processor reference

        Returns:
            Purchase entity or None if not found
        """
        pass

    @abstractmethod
    async def attach_processor_ref(self, purchase_id: str, processor_ref: str) -> Purchase:
        """
        Record the processor reference on a purchase.

        Args:
            purchase_id: Purchase id
            processor_ref: Processor reference

        Returns:
            Updated purchase entity

        Raises:
            PurchaseNotFoundError: If the purchase does not exist
        """
        pass

    @abstractmethod
    async def transition_status(
        self,
        purchase_id: str,
        new_status: PurchaseStatus,
        raw_payload: Optional[str] = None,
        expected_status: Optional[PurchaseStatus] = None,
    ) -> Optional[Purchase]:
        """
        Persist a new status and the raw processor payload.

        When ``expected_status`` is given the write only happens if the
        stored status still equals it.

        Args:
            purchase_id: Purchase id
            new_status: New canonical status
            raw_payload: Opaque processor payload
            expected_status: Status the caller read before deciding

        Returns:
            Updated purchase entity, or None if another writer changed it first

        Raises:
            PurchaseNotFoundError: If the purchase does not exist
        """
        pass

    @abstractmethod
    async def count_approved(self, product_id: uuid.UUID, email: str) -> int:
        """
        Count approved purchases for a product and email.

        Args:
            product_id: Product UUID
            email: Payer email

        Returns:
            Number of approved purchases
        """
        pass

    @abstractmethod
    async def sum_approved_units(self, product_id: uuid.UUID, email: str) -> int:
        """
        Sum the quantity of approved purchases for a product and email.

        Args:
            product_id: Product UUID
            email: Payer email

        Returns:
            Number of approved seats
        """
        pass

    @abstractmethod
    async def find_by_email(
        self,
        email: str,
        product_id: Optional[uuid.UUID] = None,
        status: Optional[PurchaseStatus] = None,
    ) -> List[Purchase]:
        """
        List purchases of a payer, newest first.

        Args:
            email: Payer email
            product_id: Optional product filter
            status: Optional status filter

        Returns:
            List of Purchase entities
        """
        pass

    @abstractmethod
    async def purge_by_prefix(self, prefix: str) -> int:
        """
        Delete purchases whose id starts with a prefix.

        Args:
            prefix: Id prefix

        Returns:
            Number of purchases deleted
        """
        pass
