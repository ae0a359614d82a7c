"""
GetDownloadHandler.

Handler for downloading a purchased product's artifact.
"""

import logging

from core.domain.exceptions import ArtifactNotFoundError, NoEntitlementError, ProductNotFoundError
from core.domain.value_objects import Email
from products.ports.artifact_locator import ArtifactLocator
from products.ports.product_repository import ProductRepository
from purchases.application.dto.purchase_dto import DownloadDTO
from purchases.application.queries.get_download import GetDownloadQuery
from purchases.ports.purchase_repository import PurchaseRepository

logger = logging.getLogger(__name__)


class GetDownloadHandler:
    """Handler for GetDownloadQuery."""

    def __init__(
        self,
        product_repository: ProductRepository,
        purchase_repository: PurchaseRepository,
        artifact_locator: ArtifactLocator,
    ):
        """Initialize handler with repositories."""
        self.product_repository = product_repository
        self.purchase_repository = purchase_repository
        self.artifact_locator = artifact_locator

    async def handle(self, query: GetDownloadQuery) -> DownloadDTO:
        """
        Handle get download query.

        Args:
            query: GetDownloadQuery

        Returns:
            DownloadDTO with the download reference

        Raises:
            ProductNotFoundError: If product not found
            NoEntitlementError: If the email has no approved purchase
            ArtifactNotFoundError: If the product has no artifact
        """
        product = await self.product_repository.find_by_id(query.product_id)
        if not product:
            raise ProductNotFoundError(f"Product {query.product_id} not found")

        email = Email(query.email).value
        if await self.purchase_repository.count_approved(product.id, email) == 0:
            raise NoEntitlementError()

        download_url = await self.artifact_locator.resolve(product.id)
        if not download_url:
            raise ArtifactNotFoundError()

        await self.product_repository.increment_download_count(product.id)
        logger.info("Download of %s by %s", product.slug, email)
        return DownloadDTO(
            product_id=product.id,
            download_url=download_url,
            download_count=product.download_count + 1,
        )
