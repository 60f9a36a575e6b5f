"""
Serializers for the operator back office endpoints.
"""

from rest_framework import serializers

from core.domain.value_objects import OrderStatus


class ChangeDeviceRequestSerializer(serializers.Serializer):
    """Serializer for change device request."""

    code = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    newDeviceId = serializers.CharField(
        source="new_device_id", required=False, allow_blank=True, allow_null=True, max_length=1024
    )
    reason = serializers.CharField(required=False, allow_blank=True, allow_null=True, max_length=1000)


class DeviceChangeResponseSerializer(serializers.Serializer):
    """Serializer for DeviceChangeDTO."""

    code = serializers.CharField()
    deviceId = serializers.CharField(source="device_id")
    previousDeviceId = serializers.CharField(source="previous_device_id", allow_null=True)
    deviceChangedAt = serializers.DateTimeField(source="device_changed_at")
    expiresAt = serializers.DateTimeField(source="expires_at")


class ManualOrderSerializer(serializers.Serializer):
    """Serializer for ManualOrderDTO."""

    id = serializers.UUIDField()
    method = serializers.CharField()
    email = serializers.CharField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField()
    reference = serializers.CharField()
    status = serializers.ChoiceField(choices=[s.value for s in OrderStatus])
    createdAt = serializers.DateTimeField(source="created_at")
    updatedAt = serializers.DateTimeField(source="updated_at")
    licenseCode = serializers.CharField(source="license_code", allow_null=True)
    invoiceNumber = serializers.CharField(source="invoice_number", allow_null=True)
    lastError = serializers.CharField(source="last_error", allow_null=True)


class OrderCompletionSerializer(serializers.Serializer):
    """Serializer for OrderCompletionDTO."""

    orderId = serializers.UUIDField(source="order_id")
    status = serializers.CharField()
    licenseCode = serializers.CharField(source="license_code")
    invoiceNumber = serializers.CharField(source="invoice_number")
    emailSent = serializers.BooleanField(source="email_sent")
    warning = serializers.CharField(allow_null=True)


class InvoiceListRequestSerializer(serializers.Serializer):
    """Serializer for the invoice listing query string."""

    startDate = serializers.DateField(source="start_date", required=False, allow_null=True)
    endDate = serializers.DateField(source="end_date", required=False, allow_null=True)


class InvoiceSerializer(serializers.Serializer):
    """Serializer for InvoiceDTO."""

    invoiceNumber = serializers.CharField(source="invoice_number")
    date = serializers.DateTimeField()
    email = serializers.CharField()
    base = serializers.DecimalField(max_digits=12, decimal_places=2)
    iva = serializers.DecimalField(max_digits=12, decimal_places=2)
    ret = serializers.DecimalField(max_digits=12, decimal_places=2)
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()
    method = serializers.CharField()
    orderId = serializers.CharField(source="order_id", allow_null=True)
    licenseCode = serializers.CharField(source="license_code", allow_null=True)


class InvoiceTotalsSerializer(serializers.Serializer):
    """Serializer for InvoiceTotalsDTO."""

    count = serializers.IntegerField()
    base = serializers.DecimalField(max_digits=14, decimal_places=2)
    iva = serializers.DecimalField(max_digits=14, decimal_places=2)
    ret = serializers.DecimalField(max_digits=14, decimal_places=2)
    total = serializers.DecimalField(max_digits=14, decimal_places=2)


class InvoiceListResponseSerializer(serializers.Serializer):
    """Serializer for InvoiceListDTO."""

    invoices = InvoiceSerializer(many=True)
    totals = InvoiceTotalsSerializer()
