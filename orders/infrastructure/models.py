"""
Order Django ORM models.

This is the infrastructure layer model for orders and payment events.
Domain entities are in orders.domain.
"""
import uuid

from django.db import models

from core.domain.value_objects import OrderStatus, PaymentEventStatus, PaymentMethod


class ManualOrder(models.Model):
    """
    A purchase paid by Bizum or bank transfer, confirmed by an operator.
    """

    METHOD_CHOICES = [(method.value, method.value) for method in PaymentMethod]
    STATUS_CHOICES = [(status.value, status.value) for status in OrderStatus]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    method = models.CharField(max_length=20, choices=METHOD_CHOICES)
    email = models.EmailField()
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=3, default="EUR")
    reference = models.CharField(max_length=64, unique=True)
    status = models.CharField(
        max_length=40, choices=STATUS_CHOICES, default=OrderStatus.PENDING.value, db_index=True
    )
    license_code = models.CharField(max_length=14, null=True, blank=True)
    invoice_number = models.CharField(max_length=20, null=True, blank=True)
    last_error = models.TextField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField()
    updated_at = models.DateTimeField()

    class Meta:
        db_table = "manual_orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self):
        return f"{self.reference} ({self.status})"


class PaymentEvent(models.Model):
    """
    Processing record of one trusted payment event, keyed by upstream id.
    """

    STATUS_CHOICES = [(status.value, status.value) for status in PaymentEventStatus]

    id = models.CharField(max_length=255, primary_key=True)
    type = models.CharField(max_length=100)
    status = models.CharField(
        max_length=40,
        choices=STATUS_CHOICES,
        default=PaymentEventStatus.RECEIVED.value,
        db_index=True,
    )
    payment_reference = models.CharField(max_length=255, null=True, blank=True, db_index=True)
    email = models.EmailField(null=True, blank=True)
    license_code = models.CharField(max_length=14, null=True, blank=True)
    invoice_number = models.CharField(max_length=20, null=True, blank=True)
    reason = models.CharField(max_length=100, null=True, blank=True)
    error = models.TextField(null=True, blank=True)
    received_at = models.DateTimeField()
    claimed_at = models.DateTimeField(null=True, blank=True)
    processed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "payment_events"
        ordering = ["-received_at"]

    def __str__(self):
        return f"{self.id} {self.type} ({self.status})"
