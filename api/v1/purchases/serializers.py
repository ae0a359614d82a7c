"""
Serializers for Purchase API endpoints.
"""

from rest_framework import serializers

from purchases.domain.purchase import MAX_QUANTITY, MIN_QUANTITY, PurchaseStatus

MIN_INSTALLMENTS = 1
MAX_INSTALLMENTS = 4


class CheckoutRequestSerializer(serializers.Serializer):
    """Serializer for hosted checkout request."""

    email = serializers.EmailField(required=True)
    name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=MIN_QUANTITY, max_value=MAX_QUANTITY
    )


class CheckoutResponseSerializer(serializers.Serializer):
    """Serializer for hosted checkout response."""

    purchase_id = serializers.CharField()
    status = serializers.CharField()
    preference_id = serializers.CharField(allow_null=True)
    init_point = serializers.URLField(allow_null=True)
    sandbox_init_point = serializers.URLField(allow_null=True)
    license_key = serializers.CharField(allow_null=True)


class IdentificationSerializer(serializers.Serializer):
    """Payer identification document."""

    type = serializers.CharField(max_length=20)
    number = serializers.CharField(max_length=40)


class PayerSerializer(serializers.Serializer):
    """Payer block of a direct charge."""

    email = serializers.EmailField(required=True)
    first_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    last_name = serializers.CharField(required=False, allow_blank=True, max_length=100)
    identification = IdentificationSerializer(required=False)


class DirectChargeRequestSerializer(serializers.Serializer):
    """Serializer for direct charge request (card token, PIX, boleto)."""

    payer = PayerSerializer(required=True)
    payment_method_id = serializers.CharField(required=True, max_length=50)
    token = serializers.CharField(required=False, max_length=255)
    installments = serializers.IntegerField(
        required=False, min_value=MIN_INSTALLMENTS, max_value=MAX_INSTALLMENTS
    )
    quantity = serializers.IntegerField(
        required=False, default=1, min_value=MIN_QUANTITY, max_value=MAX_QUANTITY
    )
    issuer_id = serializers.CharField(required=False, max_length=50)
    description = serializers.CharField(required=False, max_length=255)
    idempotency_key = serializers.CharField(required=False, max_length=255)
    device_id = serializers.CharField(required=False, max_length=255)
    tracking_id = serializers.CharField(required=False, max_length=255)


class DirectChargeResponseSerializer(serializers.Serializer):
    """Serializer for direct charge response."""

    purchase_id = serializers.CharField()
    status = serializers.CharField()
    processor_payment_id = serializers.CharField(allow_null=True)
    status_detail = serializers.CharField(allow_null=True)
    license_key = serializers.CharField(allow_null=True)
    qr_code = serializers.CharField(allow_null=True)
    qr_code_base64 = serializers.CharField(allow_null=True)
    ticket_url = serializers.CharField(allow_null=True)


class PurchaseStatusQuerySerializer(serializers.Serializer):
    """Query parameters of the purchase status lookup."""

    purchase_id = serializers.CharField(required=False, max_length=64)
    payment_id = serializers.CharField(required=False, max_length=64)
    email = serializers.EmailField(required=False)

    def validate(self, attrs):
        if not any(attrs.get(key) for key in ("purchase_id", "payment_id", "email")):
            raise serializers.ValidationError(
                "One of purchase_id, payment_id or email is required."
            )
        return attrs


class PurchaseStatusResponseSerializer(serializers.Serializer):
    """Serializer for purchase status response."""

    status = serializers.CharField()
    purchase_id = serializers.CharField(allow_null=True)
    payer_email = serializers.EmailField(allow_null=True)
    download_url = serializers.CharField(allow_null=True)


class PurchasesByEmailQuerySerializer(serializers.Serializer):
    """Query parameters of the purchase history lookup."""

    email = serializers.EmailField(required=True)
    product_id = serializers.UUIDField(required=False)


class PurchaseListItemSerializer(serializers.Serializer):
    """Serializer for PurchaseListItemDTO."""

    purchase_id = serializers.CharField()
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    quantity = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    status = serializers.CharField()
    download_url = serializers.CharField(allow_null=True)
    created_at = serializers.DateTimeField()


class PurchaseListResponseSerializer(serializers.Serializer):
    """Serializer for purchases by email response."""

    email = serializers.EmailField()
    purchases = PurchaseListItemSerializer(many=True)


class DownloadRequestSerializer(serializers.Serializer):
    """Serializer for download request."""

    email = serializers.EmailField(required=True)


class DownloadResponseSerializer(serializers.Serializer):
    """Serializer for download response."""

    product_id = serializers.UUIDField()
    download_url = serializers.CharField()
    download_count = serializers.IntegerField()


class WebhookResponseSerializer(serializers.Serializer):
    """Serializer for webhook acknowledgement."""

    received = serializers.BooleanField()
    processed = serializers.BooleanField()
    reason = serializers.CharField(allow_null=True)


class UpdatePurchaseStatusRequestSerializer(serializers.Serializer):
    """Serializer for manual status update request."""

    status = serializers.ChoiceField(choices=[s.value for s in PurchaseStatus], required=True)


class ProvisioningResultSerializer(serializers.Serializer):
    """Serializer for ProvisioningResultDTO."""

    processed = serializers.BooleanField()
    changed = serializers.BooleanField()
    purchase_id = serializers.CharField(allow_null=True)
    old_status = serializers.CharField(allow_null=True)
    new_status = serializers.CharField(allow_null=True)
    reason = serializers.CharField(allow_null=True)
    licenses_created = serializers.IntegerField()


class MergeAccountRequestSerializer(serializers.Serializer):
    """Serializer for guest account merge request."""

    guest_id = serializers.IntegerField(required=True, min_value=1)
    account_id = serializers.IntegerField(required=True, min_value=1)


class MergeAccountResponseSerializer(serializers.Serializer):
    """Serializer for guest account merge response."""

    guest_id = serializers.IntegerField()
    account_id = serializers.IntegerField()
    purchases_moved = serializers.IntegerField()
    licenses_moved = serializers.IntegerField()
