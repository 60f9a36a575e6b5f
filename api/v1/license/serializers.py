"""
Serializers for the runtime license endpoints.
"""

from rest_framework import serializers


class LicenseCheckRequestSerializer(serializers.Serializer):
    """Serializer for activate, validate and info requests."""

    code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    deviceId = serializers.CharField(
        source="device_id", required=False, allow_blank=True, allow_null=True, max_length=1024
    )


class LicenseCheckResponseSerializer(serializers.Serializer):
    """Serializer for LicenseCheckDTO."""

    code = serializers.CharField()
    status = serializers.CharField()
    result = serializers.CharField()
    expiresAt = serializers.DateTimeField(source="expires_at")
    firstActivation = serializers.BooleanField(source="first_activation")
    activatedAt = serializers.DateTimeField(source="activated_at", allow_null=True)
    deviceChangeAvailable = serializers.BooleanField(source="device_change_available")


class RecoverLicenseRequestSerializer(serializers.Serializer):
    """Serializer for license recovery request."""

    email = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class RecoveryResponseSerializer(serializers.Serializer):
    """Serializer for RecoveryDTO."""

    message = serializers.CharField()
