"""
Django admin configuration for activations app.
"""

from django.contrib import admin
from django.utils.html import format_html

from activations.infrastructure.models import ActivationLogEntry


@admin.register(ActivationLogEntry)
class ActivationLogEntryAdmin(admin.ModelAdmin):
    """Read-only admin interface for the activation log."""

    list_display = [
        "created_at",
        "action",
        "status_display",
        "email",
        "hardware_id_display",
        "product",
        "message",
    ]
    list_filter = ["action", "status", "created_at", "product"]
    search_fields = ["email", "hardware_id", "license__license_key", "ip"]
    readonly_fields = [
        "id",
        "product",
        "email",
        "hardware_id",
        "license",
        "action",
        "status",
        "message",
        "ip",
        "user_agent",
        "created_at",
    ]
    fieldsets = (
        (
            "Attempt",
            {
                "fields": ("id", "action", "status", "message"),
            },
        ),
        (
            "Subject",
            {
                "fields": ("product", "email", "hardware_id", "license"),
            },
        ),
        (
            "Caller",
            {
                "fields": ("ip", "user_agent", "created_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def hardware_id_display(self, obj):
        """Display hardware id with truncation."""
        if len(obj.hardware_id) > 24:
            return format_html(
                '<span title="{}">{}</span>',
                obj.hardware_id,
                obj.hardware_id[:21] + "...",
            )
        return obj.hardware_id

    hardware_id_display.short_description = "Device"

    def status_display(self, obj):
        """Display outcome with color."""
        if obj.status == "success":
            return format_html('<span style="color: green; font-weight: bold;">✓ Success</span>')
        return format_html('<span style="color: red; font-weight: bold;">✗ Error</span>')

    status_display.short_description = "Status"

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("product", "license")
