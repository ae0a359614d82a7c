"""
Django admin configuration for products app.
"""

from django.contrib import admin

from products.infrastructure.models import Product


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    """Admin interface for Product model."""

    list_display = ["name", "version", "price", "currency", "status", "download_count", "created_at"]
    list_filter = ["status", "currency", "created_at"]
    search_fields = ["name", "slug"]
    prepopulated_fields = {"slug": ("name",)}
    readonly_fields = ["id", "download_count", "created_at", "updated_at"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "name", "slug", "version", "status"),
            },
        ),
        (
            "Pricing",
            {
                "fields": ("price", "currency"),
            },
        ),
        (
            "Distribution",
            {
                "fields": ("artifact_url", "download_count"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )
