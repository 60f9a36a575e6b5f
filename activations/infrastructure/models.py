"""
ActivationAttempt Django ORM model.

This is the infrastructure layer model for activation attempts.
Domain entities are in activations.domain.activation.
"""
import uuid

from django.db import models

from core.domain.value_objects import CheckOperation, CheckResult


class ActivationAttempt(models.Model):
    """
    One runtime check of a license code, successful or not.

    Rows are append-only. The code is stored as text so that attempts
    with unknown codes are recorded too.
    """

    OPERATION_CHOICES = [(op.value, op.value) for op in CheckOperation]
    RESULT_CHOICES = [(result.value, result.value) for result in CheckResult]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    code = models.CharField(max_length=64, db_index=True)
    device_id = models.CharField(max_length=255, null=True, blank=True)
    operation = models.CharField(max_length=20, choices=OPERATION_CHOICES)
    result = models.CharField(max_length=32, choices=RESULT_CHOICES)
    created_at = models.DateTimeField(db_index=True)

    class Meta:
        db_table = "activation_attempts"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["code", "created_at"]),
        ]

    def __str__(self):
        return f"{self.code} {self.operation} -> {self.result}"
