"""
License model.
"""
from django.db import models
from django.db.models import Q


class License(models.Model):
    """
    One seat of a product held by an email.

    An empty hardware id means the seat is a free slot.
    """

    id = models.BigAutoField(primary_key=True)
    product = models.ForeignKey(
        "products.Product", on_delete=models.CASCADE, related_name="licenses"
    )
    email = models.EmailField(db_index=True)
    owner_id = models.IntegerField(
        null=True, blank=True, db_index=True, help_text="Owning account id, if known"
    )
    hardware_id = models.CharField(
        max_length=64, null=True, blank=True, help_text="Bound device, empty when free"
    )
    license_key = models.CharField(max_length=32, unique=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    purchase = models.ForeignKey(
        "purchases.Purchase",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="licenses",
    )
    seat_index = models.PositiveSmallIntegerField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["product", "email"]),
            models.Index(fields=["product", "email", "hardware_id"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["purchase", "seat_index"],
                condition=Q(purchase__isnull=False),
                name="uniq_license_purchase_seat",
            ),
            models.UniqueConstraint(
                fields=["product", "email", "hardware_id"],
                condition=Q(hardware_id__isnull=False) & ~Q(hardware_id=""),
                name="uniq_license_bound_device",
            ),
        ]

    def __str__(self):
        return self.license_key

    @property
    def is_bound(self) -> bool:
        return bool(self.hardware_id)
