"""
UpdatePurchaseStatusHandler.

Staff override of a purchase status. The change goes through the
provisioning coordinator like any completion signal, so approving by
hand materializes seats exactly once and cannot move a purchase back.
"""

from core.domain.exceptions import InvalidPurchaseError, PurchaseNotFoundError
from purchases.application.commands.update_purchase_status import UpdatePurchaseStatusCommand
from purchases.application.dto.purchase_dto import ProvisioningResultDTO
from purchases.application.services.provisioning_coordinator import ProvisioningCoordinator
from purchases.domain.purchase import PurchaseStatus
from purchases.ports.purchase_repository import PurchaseRepository


class UpdatePurchaseStatusHandler:
    """Handler for UpdatePurchaseStatusCommand."""

    def __init__(
        self,
        purchase_repository: PurchaseRepository,
        coordinator: ProvisioningCoordinator,
    ):
        """Initialize handler with repositories."""
        self.purchase_repository = purchase_repository
        self.coordinator = coordinator

    async def handle(self, command: UpdatePurchaseStatusCommand) -> ProvisioningResultDTO:
        """
        Handle update purchase status command.

        Args:
            command: UpdatePurchaseStatusCommand

        Returns:
            ProvisioningResultDTO

        Raises:
            InvalidPurchaseError: If the status is not canonical
            PurchaseNotFoundError: If purchase not found
        """
        try:
            status = PurchaseStatus(command.status.strip().lower())
        except ValueError:
            raise InvalidPurchaseError(f"Unknown purchase status: {command.status}")

        purchase = await self.purchase_repository.find_by_id(command.purchase_id)
        if not purchase:
            raise PurchaseNotFoundError(f"Purchase {command.purchase_id} not found")

        return await self.coordinator.apply_status(purchase, status, source="admin")
