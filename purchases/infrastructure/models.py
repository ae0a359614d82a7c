"""
Purchase ledger model.
"""
from django.db import models


class Purchase(models.Model):
    """
    One checkout attempt: product, seats, payer and canonical status.
    """

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
        ("cancelled", "Cancelled"),
        ("refunded", "Refunded"),
    ]

    id = models.CharField(primary_key=True, max_length=64, editable=False)
    product = models.ForeignKey(
        "products.Product", on_delete=models.PROTECT, related_name="purchases"
    )
    owner_id = models.IntegerField(
        null=True, blank=True, db_index=True, help_text="Owning account id, if known"
    )
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="pending")
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    quantity = models.PositiveSmallIntegerField(default=1)
    currency = models.CharField(max_length=3, default="BRL")
    payer_email = models.EmailField(db_index=True)
    payer_name = models.CharField(max_length=255, null=True, blank=True)
    payer_document = models.CharField(max_length=32, null=True, blank=True)
    processor_ref = models.CharField(
        max_length=128,
        null=True,
        blank=True,
        db_index=True,
        help_text="Processor preference or charge id",
    )
    raw_response = models.TextField(null=True, blank=True, help_text="Last processor payload")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "purchases"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["product", "payer_email", "status"]),
            models.Index(fields=["status"]),
        ]

    def __str__(self):
        return f"{self.id} ({self.status})"
