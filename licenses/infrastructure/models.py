"""
License and AuditLog models.
"""
import uuid

from django.db import models
from django.utils import timezone


class License(models.Model):
    """
    A license code sold to a customer, bound to at most one device.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("used", "Used"),
        ("expired", "Expired"),
        ("revoked", "Revoked"),
        ("refunded", "Refunded"),
    ]

    SOURCE_CHOICES = [
        ("manual", "Manual order"),
        ("stripe", "Hosted checkout"),
    ]

    code = models.CharField(max_length=14, primary_key=True)
    email = models.EmailField(db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default="active", db_index=True)
    source = models.CharField(max_length=20, choices=SOURCE_CHOICES)
    payment_reference = models.CharField(
        max_length=255, help_text="Manual order id or checkout session id"
    )
    amount_total = models.IntegerField(null=True, blank=True, help_text="Minor currency units")
    currency = models.CharField(max_length=10, null=True, blank=True)
    device_id = models.CharField(max_length=255, null=True, blank=True)
    activated_at = models.DateTimeField(null=True, blank=True)
    device_change_used = models.BooleanField(default=False)
    device_changed_at = models.DateTimeField(null=True, blank=True)
    previous_device_id = models.CharField(max_length=255, null=True, blank=True)
    device_change_reason = models.CharField(max_length=200, null=True, blank=True)
    recovery_used = models.BooleanField(default=False)
    recovery_used_at = models.DateTimeField(null=True, blank=True)
    last_validated_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField()
    expires_at = models.DateTimeField(db_index=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "licenses"
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(
                fields=["source", "payment_reference"],
                name="unique_license_per_payment",
            ),
        ]
        indexes = [
            models.Index(fields=["email", "status"]),
            models.Index(fields=["status", "expires_at"]),
        ]

    def __str__(self):
        return f"{self.code} ({self.status})"


class AuditLog(models.Model):
    """
    Immutable audit trail of all license and order changes.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    event_id = models.UUIDField(unique=True)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=255, db_index=True)
    action = models.CharField(max_length=50, db_index=True)
    changes = models.JSONField(default=dict, help_text="Details of the change")
    actor = models.CharField(max_length=255, default="system", help_text="Who performed the action")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "audit_logs"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self):
        return f"{self.action} - {self.entity_type} {self.entity_id}"
