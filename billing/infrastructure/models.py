"""
InvoiceCounter and Invoice models.
"""
from django.db import models


class InvoiceCounter(models.Model):
    """
    Per-year invoice counter. `current` is the last number handed out.
    """

    year = models.PositiveIntegerField(unique=True)
    current = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "invoice_counters"
        ordering = ["-year"]

    def __str__(self):
        return f"{self.year}: {self.current}"


class Invoice(models.Model):
    """
    Append-only invoice ledger entry, keyed by "N-YYYY".
    """

    slug = models.CharField(max_length=20, primary_key=True)
    invoice_number = models.CharField(max_length=20, unique=True)
    sequence = models.PositiveIntegerField()
    year = models.PositiveIntegerField()
    issued_at = models.DateTimeField(db_index=True)
    email = models.EmailField()
    base = models.DecimalField(max_digits=10, decimal_places=2)
    iva = models.DecimalField(max_digits=10, decimal_places=2)
    ret = models.DecimalField(max_digits=10, decimal_places=2)
    total = models.DecimalField(max_digits=10, decimal_places=2)
    iva_percent = models.DecimalField(max_digits=5, decimal_places=2)
    retention_percent = models.DecimalField(max_digits=5, decimal_places=2)
    currency = models.CharField(max_length=10, default="EUR")
    method = models.CharField(max_length=20)
    source = models.CharField(max_length=20)
    payment_reference = models.CharField(max_length=255)
    order_id = models.CharField(max_length=64, null=True, blank=True)
    license_code = models.CharField(max_length=14, null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "invoices"
        ordering = ["issued_at", "year", "sequence"]
        constraints = [
            models.UniqueConstraint(fields=["year", "sequence"], name="unique_invoice_sequence"),
            models.UniqueConstraint(
                fields=["source", "payment_reference"], name="unique_invoice_per_payment"
            ),
        ]

    def __str__(self):
        return self.invoice_number
