"""
Product model.
"""
import uuid

from django.conf import settings
from django.db import models


class Product(models.Model):
    """
    Represents a piece of software that can be purchased (e.g. a desktop app).
    """

    STATUS_CHOICES = [
        ("draft", "Draft"),
        ("published", "Published"),
        ("archived", "Archived"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, help_text="Product display name")
    slug = models.SlugField(max_length=100, unique=True, help_text="URL-safe identifier")
    version = models.CharField(max_length=50, null=True, blank=True)
    price = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default=settings.DEFAULT_CURRENCY)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="draft")
    artifact_url = models.CharField(
        max_length=500, null=True, blank=True, help_text="Download URL or storage path"
    )
    download_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "products"
        ordering = ["name"]
        indexes = [
            models.Index(fields=["slug"]),
            models.Index(fields=["status"]),
        ]

    def clean(self):
        """Validate product fields."""
        from django.core.exceptions import ValidationError

        if not self.slug:
            raise ValidationError("Slug is required")
        if not self.name:
            raise ValidationError("Name is required")
        if self.price is not None and self.price < 0:
            raise ValidationError("Price cannot be negative")

    def __str__(self):
        if self.version:
            return f"{self.name} {self.version}"
        return self.name
