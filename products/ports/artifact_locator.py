"""
Artifact location resolver port.
"""
from abc import ABC, abstractmethod
from typing import Optional
import uuid


class ArtifactLocator(ABC):
    """Resolves the download reference for a product's artifact."""

    @abstractmethod
    async def resolve(self, product_id: uuid.UUID) -> Optional[str]:
        """
        Resolve the download reference for a product.

        Args:
            product_id: Product UUID

        Returns:
            URL or storage path, or None if the product has no artifact
        """
        pass
