"""
Product domain entity.

This is the core domain entity representing a purchasable product.
It contains business logic and is independent of infrastructure.
"""
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.domain.value_objects import ProductSlug


class ProductStatus(Enum):
    """Publication status of a product."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"

    def __str__(self) -> str:
        """Return status as string."""
        return self.value


@dataclass(frozen=True)
class Product:
    """
    Product domain entity.

    Represents a piece of software that can be purchased and activated
    on devices. This is an immutable value object with business logic.
    """

    id: uuid.UUID
    name: str
    slug: ProductSlug
    version: Optional[str]
    price: Decimal
    currency: str
    status: ProductStatus
    artifact_url: Optional[str]
    download_count: int
    created_at: datetime
    updated_at: datetime

    def __post_init__(self):
        """Validate product entity."""
        if not self.name or len(self.name.strip()) == 0:
            raise ValueError("Product name cannot be empty")
        if len(self.name) > 255:
            raise ValueError("Product name too long")
        if self.price < 0:
            raise ValueError("Product price cannot be negative")

    @classmethod
    def create(
        cls,
        name: str,
        slug: str,
        price: Decimal = Decimal("0"),
        currency: str = "BRL",
        version: Optional[str] = None,
        status: ProductStatus = ProductStatus.PUBLISHED,
        artifact_url: Optional[str] = None,
        product_id: Optional[uuid.UUID] = None,
    ) -> "Product":
        """
        Create a new Product entity.

        Args:
            name: Product display name
            slug: Product slug (URL-safe identifier)
            price: Unit price
            currency: ISO currency code
            version: Optional version label
            status: Publication status
            artifact_url: Optional download reference
            product_id: Optional UUID (generated if not provided)

        Returns:
            Product entity instance
        """
        now = datetime.now(timezone.utc)
        return cls(
            id=product_id or uuid.uuid4(),
            name=name.strip(),
            slug=ProductSlug(slug),
            version=version,
            price=Decimal(price),
            currency=currency,
            status=status,
            artifact_url=artifact_url,
            download_count=0,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_published(self) -> bool:
        """Only published products can be bought."""
        return self.status == ProductStatus.PUBLISHED

    @property
    def is_free(self) -> bool:
        """Zero-priced products skip the payment processor."""
        return self.price == 0

    def publish(self) -> "Product":
        """
        Create a new Product instance with published status.

        Returns:
            New Product instance
        """
        return replace(self, status=ProductStatus.PUBLISHED, updated_at=datetime.now(timezone.utc))
