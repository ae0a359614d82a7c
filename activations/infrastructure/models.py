"""
Activation log Django ORM model.

This is the infrastructure layer model for the activation log.
Domain entities are in activations.domain.activation_log.
"""
from django.db import models


class ActivationLogEntry(models.Model):
    """
    One activation, verification or release attempt.
    Append-only.
    """

    ACTION_CHOICES = [
        ("activate", "Activate"),
        ("verify", "Verify"),
        ("release", "Release"),
    ]

    STATUS_CHOICES = [
        ("success", "Success"),
        ("error", "Error"),
    ]

    id = models.BigAutoField(primary_key=True)
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activation_logs",
    )
    email = models.EmailField(db_index=True)
    hardware_id = models.CharField(max_length=64)
    license = models.ForeignKey(
        "licenses.License",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activation_logs",
    )
    action = models.CharField(max_length=16, choices=ACTION_CHOICES)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES)
    message = models.CharField(max_length=255)
    ip = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "activation_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["product", "email"]),
            models.Index(fields=["action", "status"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return f"{self.action} {self.status} - {self.email} @ {self.hardware_id}"
