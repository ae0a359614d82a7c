"""
ListPurchasesByEmailHandler.

Handler for a buyer's purchase history.
"""

from core.domain.value_objects import Email
from products.ports.artifact_locator import ArtifactLocator
from products.ports.product_repository import ProductRepository
from purchases.application.dto.purchase_dto import PurchaseListDTO, PurchaseListItemDTO
from purchases.application.queries.list_purchases_by_email import ListPurchasesByEmailQuery
from purchases.domain.purchase import PurchaseStatus
from purchases.ports.purchase_repository import PurchaseRepository


class ListPurchasesByEmailHandler:
    """Handler for ListPurchasesByEmailQuery."""

    def __init__(
        self,
        purchase_repository: PurchaseRepository,
        product_repository: ProductRepository,
        artifact_locator: ArtifactLocator,
    ):
        """Initialize handler with repositories."""
        self.purchase_repository = purchase_repository
        self.product_repository = product_repository
        self.artifact_locator = artifact_locator

    async def handle(self, query: ListPurchasesByEmailQuery) -> PurchaseListDTO:
        """
        Handle list purchases by email query.

        Only approved purchases are listed.

        Args:
            query: ListPurchasesByEmailQuery

        Returns:
            PurchaseListDTO
        """
        email = Email(query.email).value
        purchases = await self.purchase_repository.find_by_email(
            email, product_id=query.product_id, status=PurchaseStatus.APPROVED
        )

        # One product lookup per distinct product
        products = {}
        downloads = {}
        items = []
        for purchase in purchases:
            if purchase.product_id not in products:
                products[purchase.product_id] = await self.product_repository.find_by_id(
                    purchase.product_id
                )
                downloads[purchase.product_id] = await self.artifact_locator.resolve(
                    purchase.product_id
                )
            product = products[purchase.product_id]
            items.append(
                PurchaseListItemDTO(
                    purchase_id=purchase.id,
                    product_id=purchase.product_id,
                    product_name=product.name if product else "Unknown",
                    quantity=purchase.quantity,
                    amount=purchase.amount,
                    currency=purchase.currency,
                    status=purchase.status.value,
                    download_url=downloads[purchase.product_id],
                    created_at=purchase.created_at,
                )
            )

        return PurchaseListDTO(email=email, purchases=items)
