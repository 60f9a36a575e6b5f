"""
Django admin configuration for billing app.
"""
from django.contrib import admin

from billing.infrastructure.models import Invoice, InvoiceCounter


@admin.register(InvoiceCounter)
class InvoiceCounterAdmin(admin.ModelAdmin):
    """Admin interface for InvoiceCounter model. Read only: numbers are never edited."""

    list_display = ["year", "current", "updated_at"]
    readonly_fields = ["year", "current", "updated_at"]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """Admin interface for the append-only invoice ledger."""

    list_display = [
        "invoice_number",
        "issued_at",
        "email",
        "total",
        "currency",
        "method",
        "license_code",
    ]
    list_filter = ["method", "year", "issued_at"]
    search_fields = ["invoice_number", "email", "payment_reference", "order_id", "license_code"]
    date_hierarchy = "issued_at"
    ordering = ["-issued_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
