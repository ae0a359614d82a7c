"""
MergeGuestAccountHandler.

Handler for folding a guest identity into a registered account.
"""

from core.domain.exceptions import AccountNotFoundError, InvalidAccountMergeError
from core.infrastructure.events import event_bus
from purchases.application.commands.merge_guest_account import MergeGuestAccountCommand
from purchases.application.dto.purchase_dto import MergeResultDTO
from purchases.domain.events import GuestAccountMerged
from purchases.ports.identity_merge_repository import IdentityMergeRepository


class MergeGuestAccountHandler:
    """Handler for MergeGuestAccountCommand."""

    def __init__(self, identity_merge_repository: IdentityMergeRepository):
        """Initialize handler with repositories."""
        self.identity_merge_repository = identity_merge_repository

    async def handle(self, command: MergeGuestAccountCommand) -> MergeResultDTO:
        """
        Handle merge guest account command.

        Args:
            command: MergeGuestAccountCommand

        Returns:
            MergeResultDTO with the number of rows moved

        Raises:
            InvalidAccountMergeError: If guest and account are the same user
            AccountNotFoundError: If either user does not exist
        """
        if command.guest_id == command.account_id:
            raise InvalidAccountMergeError()

        if not await self.identity_merge_repository.account_exists(command.account_id):
            raise AccountNotFoundError(f"Account {command.account_id} not found")

        purchases_moved, licenses_moved = await self.identity_merge_repository.merge(
            command.guest_id, command.account_id
        )

        await event_bus.publish(
            GuestAccountMerged(
                guest_id=command.guest_id,
                account_id=command.account_id,
                purchases_moved=purchases_moved,
                licenses_moved=licenses_moved,
            )
        )
        return MergeResultDTO(
            guest_id=command.guest_id,
            account_id=command.account_id,
            purchases_moved=purchases_moved,
            licenses_moved=licenses_moved,
        )
