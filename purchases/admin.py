"""
Django admin configuration for purchases app.
"""
from django.contrib import admin
from django.utils.html import format_html

from purchases.infrastructure.models import Purchase


@admin.register(Purchase)
class PurchaseAdmin(admin.ModelAdmin):
    """
    Admin interface for Purchase model.

    Status is read-only here; manual changes go through the staff
    status endpoint so that seats are materialized.
    """

    list_display = [
        "id",
        "product",
        "payer_email",
        "quantity",
        "amount",
        "status_display",
        "created_at",
    ]
    list_filter = ["status", "currency", "created_at", "product"]
    search_fields = ["id", "payer_email", "processor_ref", "product__name"]
    readonly_fields = [
        "id",
        "status",
        "amount",
        "unit_price",
        "processor_ref",
        "raw_response",
        "created_at",
        "updated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "product", "status", "quantity", "unit_price", "amount", "currency"),
            },
        ),
        (
            "Payer",
            {
                "fields": ("payer_email", "payer_name", "payer_document", "owner_id"),
            },
        ),
        (
            "Processor",
            {
                "fields": ("processor_ref", "raw_response"),
                "classes": ("collapse",),
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

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            "approved": "green",
            "pending": "orange",
            "rejected": "red",
            "cancelled": "gray",
            "refunded": "purple",
        }
        color = colors.get(obj.status, "black")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.status.upper(),
        )

    status_display.short_description = "Status"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("product")
