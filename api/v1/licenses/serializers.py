"""
Serializers for License API endpoints.
"""

from rest_framework import serializers

from core.domain.value_objects import HARDWARE_ID_MAX_LENGTH

HARDWARE_ID_MIN_LENGTH = 6


class DeviceRequestSerializer(serializers.Serializer):
    """Serializer for activate and verify requests."""

    product_id = serializers.UUIDField(required=True)
    email = serializers.EmailField(required=True)
    hardware_id = serializers.CharField(
        required=True,
        min_length=HARDWARE_ID_MIN_LENGTH,
        max_length=HARDWARE_ID_MAX_LENGTH,
        trim_whitespace=True,
    )


class CompatCheckRequestSerializer(serializers.Serializer):
    """
    Serializer for the legacy license check.

    Older clients send ``pc_id`` or ``id_pc`` instead of ``hardware_id``
    and ``app_id`` instead of ``product_id``.
    """

    product_id = serializers.UUIDField(required=False)
    app_id = serializers.UUIDField(required=False)
    email = serializers.EmailField(required=True)
    hardware_id = serializers.CharField(required=False, max_length=HARDWARE_ID_MAX_LENGTH)
    pc_id = serializers.CharField(required=False, max_length=HARDWARE_ID_MAX_LENGTH)
    id_pc = serializers.CharField(required=False, max_length=HARDWARE_ID_MAX_LENGTH)

    def validate(self, attrs):
        product_id = attrs.get("product_id") or attrs.get("app_id")
        hardware_id = attrs.get("hardware_id") or attrs.get("pc_id") or attrs.get("id_pc")
        if not product_id:
            raise serializers.ValidationError({"product_id": "This field is required."})
        if not hardware_id or len(hardware_id) < HARDWARE_ID_MIN_LENGTH:
            message = f"Ensure this field has at least {HARDWARE_ID_MIN_LENGTH} characters."
            raise serializers.ValidationError({"hardware_id": message})
        return {"product_id": product_id, "email": attrs["email"], "hardware_id": hardware_id}


class ActivationResponseSerializer(serializers.Serializer):
    """Serializer for activate device response."""

    license_id = serializers.IntegerField()
    license_key = serializers.CharField()
    product_name = serializers.CharField()
    activated_at = serializers.DateTimeField(allow_null=True)
    message = serializers.CharField()


class VerificationResponseSerializer(serializers.Serializer):
    """Serializer for verify device response."""

    valid = serializers.BooleanField()
    license_key = serializers.CharField(allow_null=True)
    activated_at = serializers.DateTimeField(allow_null=True)
    product_name = serializers.CharField(allow_null=True)


class ClaimByEmailRequestSerializer(serializers.Serializer):
    """Serializer for claim by email request."""

    email = serializers.EmailField(required=True)


class LicenseSerializer(serializers.Serializer):
    """Serializer for LicenseDTO."""

    id = serializers.IntegerField()
    product_id = serializers.UUIDField()
    product_name = serializers.CharField()
    license_key = serializers.CharField()
    hardware_id = serializers.CharField(allow_null=True)
    activated_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()


class LicenseListResponseSerializer(serializers.Serializer):
    """Serializer for claim by email response."""

    email = serializers.EmailField()
    licenses = LicenseSerializer(many=True)


class ReleaseResponseSerializer(serializers.Serializer):
    """Serializer for release device response."""

    license_id = serializers.IntegerField()
    released_hardware_id = serializers.CharField(allow_null=True)
    message = serializers.CharField()
