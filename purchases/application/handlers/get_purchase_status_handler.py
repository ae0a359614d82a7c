"""
GetPurchaseStatusHandler.

Handler for the checkout return page polling a purchase.
"""

from typing import Optional

from core.domain.value_objects import Email
from products.ports.artifact_locator import ArtifactLocator
from purchases.application.dto.purchase_dto import PurchaseStatusDTO
from purchases.application.queries.get_purchase_status import GetPurchaseStatusQuery
from purchases.domain.purchase import Purchase, PurchaseStatus
from purchases.ports.purchase_repository import PurchaseRepository

NOT_FOUND = "not_found"


class GetPurchaseStatusHandler:
    """Handler for GetPurchaseStatusQuery."""

    def __init__(
        self,
        purchase_repository: PurchaseRepository,
        artifact_locator: ArtifactLocator,
    ):
        """Initialize handler with repositories."""
        self.purchase_repository = purchase_repository
        self.artifact_locator = artifact_locator

    async def handle(self, query: GetPurchaseStatusQuery) -> PurchaseStatusDTO:
        """
        Handle get purchase status query.

        Args:
            query: GetPurchaseStatusQuery

        Returns:
            PurchaseStatusDTO; status is ``not_found`` when nothing matches
        """
        purchase = await self._lookup(query)
        if purchase is None:
            return PurchaseStatusDTO(status=NOT_FOUND)

        download_url = None
        if purchase.is_approved:
            download_url = await self.artifact_locator.resolve(purchase.product_id)

        return PurchaseStatusDTO(
            status=purchase.status.value,
            purchase_id=purchase.id,
            payer_email=purchase.payer_email,
            download_url=download_url,
        )

    async def _lookup(self, query: GetPurchaseStatusQuery) -> Optional[Purchase]:
        if query.purchase_id:
            purchase = await self.purchase_repository.find_by_id(query.purchase_id)
            if purchase and purchase.product_id == query.product_id:
                return purchase

        if query.processor_ref:
            purchase = await self.purchase_repository.find_by_processor_ref(query.processor_ref)
            if purchase and purchase.product_id == query.product_id:
                return purchase

        if query.email:
            purchases = await self.purchase_repository.find_by_email(
                Email(query.email).value, product_id=query.product_id
            )
            for wanted in (PurchaseStatus.APPROVED, PurchaseStatus.PENDING):
                for purchase in purchases:
                    if purchase.status == wanted:
                        return purchase

        return None
