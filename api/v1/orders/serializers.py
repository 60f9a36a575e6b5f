"""
Serializers for the purchase endpoints.

Wire names are camelCase; validation of the values themselves happens
in the handlers so callers get the same error codes everywhere.
"""

from rest_framework import serializers


class CreateManualOrderRequestSerializer(serializers.Serializer):
    """Serializer for create manual order request."""

    method = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    email = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class ManualOrderCreatedResponseSerializer(serializers.Serializer):
    """Serializer for ManualOrderCreatedDTO."""

    orderId = serializers.UUIDField(source="order_id")
    reference = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    instructions = serializers.DictField()


class PaymentEventRequestSerializer(serializers.Serializer):
    """Envelope of a trusted payment event, documented for the schema only."""

    id = serializers.CharField()
    type = serializers.CharField()
    payload = serializers.DictField()


class PaymentEventResultSerializer(serializers.Serializer):
    """Serializer for PaymentEventResultDTO."""

    eventId = serializers.CharField(source="event_id")
    status = serializers.CharField()
    duplicate = serializers.BooleanField()
    licenseCode = serializers.CharField(source="license_code", allow_null=True)
    invoiceNumber = serializers.CharField(source="invoice_number", allow_null=True)
