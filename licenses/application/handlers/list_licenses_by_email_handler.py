"""
ListLicensesByEmailHandler.

Handler for listing licenses by holder email.
"""

from core.domain.value_objects import Email
from licenses.application.dto.license_dto import LicenseDTO, LicenseListDTO
from licenses.application.queries.list_licenses_by_email import ListLicensesByEmailQuery
from licenses.ports.license_repository import LicenseRepository
from products.ports.product_repository import ProductRepository


class ListLicensesByEmailHandler:
    """Handler for ListLicensesByEmailQuery."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        product_repository: ProductRepository,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.product_repository = product_repository

    async def handle(self, query: ListLicensesByEmailQuery) -> LicenseListDTO:
        """
        Handle list licenses by email query.

        Args:
            query: ListLicensesByEmailQuery

        Returns:
            LicenseListDTO, newest license first
        """
        email = Email(query.email).value
        licenses = await self.license_repository.find_by_email(email)

        product_names = {}
        items = []
        for license in licenses:
            if license.product_id not in product_names:
                product = await self.product_repository.find_by_id(license.product_id)
                product_names[license.product_id] = product.name if product else "Unknown"

            items.append(
                LicenseDTO(
                    id=license.id,
                    product_id=license.product_id,
                    product_name=product_names[license.product_id],
                    license_key=license.license_key,
                    hardware_id=license.hardware_id,
                    activated_at=license.activated_at,
                    created_at=license.created_at,
                )
            )

        return LicenseListDTO(email=email, licenses=items)
