"""
Django implementation of ProductRepository port.

This adapter converts between domain entities and Django ORM models.
"""

import uuid
from typing import Optional

from asgiref.sync import sync_to_async
from django.db.models import F

from core.domain.value_objects import ProductSlug
from products.domain.product import Product, ProductStatus
from products.infrastructure.models import Product as ProductModel
from products.ports.product_repository import ProductRepository


class DjangoProductRepository(ProductRepository):
    """
    Django ORM implementation of ProductRepository.

    This adapter:
    1. Converts Django models to domain entities
    2. Converts domain entities to Django models
    3. Implements repository interface
    """

    def _to_domain(self, model: ProductModel) -> Product:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Product model

        Returns:
            Product domain entity
        """
        return Product(
            id=model.id,
            name=model.name,
            slug=ProductSlug(model.slug),
            version=model.version,
            price=model.price,
            currency=model.currency,
            status=ProductStatus(model.status),
            artifact_url=model.artifact_url,
            download_count=model.download_count,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, product: Product) -> ProductModel:
        """
        Convert domain entity to Django model.

        Args:
            product: Product domain entity

        Returns:
            Django Product model
        """
        model, created = ProductModel.objects.get_or_create(
            id=product.id,
            defaults={
                "name": product.name,
                "slug": str(product.slug),
                "version": product.version,
                "price": product.price,
                "currency": product.currency,
                "status": product.status.value,
                "artifact_url": product.artifact_url,
            },
        )
        if not created:
            model.name = product.name
            model.slug = str(product.slug)
            model.version = product.version
            model.price = product.price
            model.currency = product.currency
            model.status = product.status.value
            model.artifact_url = product.artifact_url
        return model

    @sync_to_async
    def save(self, product: Product) -> Product:
        """
        Save a product entity.

        Args:
            product: Product entity to save

        Returns:
            Saved product entity
        """
        model = self._to_model(product)
        model.save()
        return self._to_domain(model)

    @sync_to_async
    def find_by_id(self, product_id: uuid.UUID) -> Optional[Product]:
        """
        Find a product by ID.

        Args:
            product_id: Product UUID

        Returns:
            Product entity or None if not found
        """
        try:
            model = ProductModel.objects.get(id=product_id)
            return self._to_domain(model)
        except ProductModel.DoesNotExist:
            return None

    @sync_to_async
    def find_by_slug(self, slug: str) -> Optional[Product]:
        """
        Find a product by slug.

        Args:
            slug: Product slug

        Returns:
            Product entity or None if not found
        """
        try:
            model = ProductModel.objects.get(slug=slug)
            return self._to_domain(model)
        except ProductModel.DoesNotExist:
            return None

    @sync_to_async
    def increment_download_count(self, product_id: uuid.UUID) -> None:
        """
        Record one download of the product artifact.

        Args:
            product_id: Product UUID
        """
        ProductModel.objects.filter(id=product_id).update(download_count=F("download_count") + 1)
