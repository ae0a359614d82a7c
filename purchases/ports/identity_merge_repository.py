"""
Identity merge port (interface).
"""
from abc import ABC, abstractmethod
from typing import Tuple


class IdentityMergeRepository(ABC):
    """Moves ownership from a guest identity to a registered account."""

    @abstractmethod
    async def account_exists(self, account_id: int) -> bool:
        """
        Check if an account exists.

        Args:
            account_id: Account id

        Returns:
            True if the account exists
        """
        pass

    @abstractmethod
    async def merge(self, guest_id: int, account_id: int) -> Tuple[int, int]:
        """
        Reassign purchases and licenses, then retire the guest.

        Both steps run in one transaction: either everything moves and the
        guest is deactivated, or nothing changes.

        Args:
            guest_id: Guest account id
            account_id: Registered account id

        Returns:
            Tuple of (purchases moved, licenses moved)
        """
        pass
