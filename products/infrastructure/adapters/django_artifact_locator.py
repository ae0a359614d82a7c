"""
Django implementation of the ArtifactLocator port.
"""
import uuid
from typing import Optional
from urllib.parse import urljoin

from asgiref.sync import sync_to_async
from django.conf import settings

from products.infrastructure.models import Product as ProductModel
from products.ports.artifact_locator import ArtifactLocator


class DjangoArtifactLocator(ArtifactLocator):
    """
    Reads the artifact reference stored on the product.

    Relative references are joined to ``ARTIFACT_BASE_URL``.
    """

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url if base_url is not None else getattr(settings, "ARTIFACT_BASE_URL", "")

    @sync_to_async
    def resolve(self, product_id: uuid.UUID) -> Optional[str]:
        artifact_url = (
            ProductModel.objects.filter(id=product_id)
            .values_list("artifact_url", flat=True)
            .first()
        )
        if not artifact_url:
            return None
        if artifact_url.startswith(("http://", "https://")) or not self.base_url:
            return artifact_url
        return urljoin(self.base_url.rstrip("/") + "/", artifact_url.lstrip("/"))
