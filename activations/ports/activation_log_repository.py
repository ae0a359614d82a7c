"""
Activation log repository port (interface).

This defines the contract for the append-only activation log.
Implementations are in the infrastructure layer.
"""
from abc import ABC, abstractmethod
from typing import List
import uuid

from activations.domain.activation_log import ActivationLogEntry


class ActivationLogRepository(ABC):
    """
    Abstract repository for ActivationLogEntry entities.

    Entries can be appended and read, never changed.
    """

    @abstractmethod
    async def append(self, entry: ActivationLogEntry) -> ActivationLogEntry:
        """
        Append an entry to the log.

        Args:
            entry: ActivationLogEntry to store

        Returns:
            Stored entry (with its id assigned)
        """
        pass

    @abstractmethod
    async def find_by_product_and_email(
        self, product_id: uuid.UUID, email: str, limit: int = 100
    ) -> List[ActivationLogEntry]:
        """
        Read the latest entries for a product and email, newest first.

        Args:
            product_id: Product UUID
            email: Caller email
            limit: Maximum number of entries

        Returns:
            List of ActivationLogEntry entities
        """
        pass
