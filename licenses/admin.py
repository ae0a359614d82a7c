"""
Django admin configuration for licenses app.
"""
from asgiref.sync import async_to_sync
from django.contrib import admin, messages
from django.utils.html import format_html

from activations.application.services.activation_audit import ActivationAuditor
from activations.infrastructure.repositories.django_activation_log_repository import (
    DjangoActivationLogRepository,
)
from licenses.application.commands.release_device import ReleaseDeviceCommand
from licenses.application.handlers.release_device_handler import ReleaseDeviceHandler
from licenses.infrastructure.models import License
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "license_key",
        "product",
        "email",
        "device_display",
        "purchase",
        "seat_index",
        "activated_at",
        "created_at",
    ]
    list_filter = ["product", "activated_at", "created_at"]
    search_fields = ["license_key", "email", "hardware_id", "purchase__id"]
    readonly_fields = [
        "id",
        "license_key",
        "purchase",
        "seat_index",
        "hardware_id",
        "activated_at",
        "created_at",
        "updated_at",
    ]
    actions = ["release_devices"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "license_key", "product", "email", "owner_id"),
            },
        ),
        (
            "Device",
            {
                "fields": ("hardware_id", "activated_at"),
            },
        ),
        (
            "Origin",
            {
                "fields": ("purchase", "seat_index"),
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

    def device_display(self, obj):
        """Display the bound device, or a free slot marker."""
        if obj.is_bound:
            return obj.hardware_id
        return format_html('<span style="color: gray;">{}</span>', "free slot")

    device_display.short_description = "Device"

    @admin.action(description="Release device from selected licenses")
    def release_devices(self, request, queryset):
        """Free the slot of each selected license."""
        handler = ReleaseDeviceHandler(
            license_repository=DjangoLicenseRepository(),
            auditor=ActivationAuditor(DjangoActivationLogRepository()),
        )
        released = 0
        for license_id in queryset.filter(hardware_id__isnull=False).values_list("id", flat=True):
            result = async_to_sync(handler.handle)(
                ReleaseDeviceCommand(
                    license_id=license_id,
                    actor=request.user.get_username(),
                    ip=request.META.get("REMOTE_ADDR"),
                    user_agent=request.META.get("HTTP_USER_AGENT"),
                )
            )
            if result.released_hardware_id:
                released += 1
        self.message_user(request, f"Released {released} device(s).", messages.SUCCESS)

    def get_queryset(self, request):
        """Optimize queryset."""
        return super().get_queryset(request).select_related("product", "purchase")
