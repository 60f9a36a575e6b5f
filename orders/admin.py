"""
Django admin configuration for orders app.
"""
from django.contrib import admin
from django.utils.html import format_html

from orders.infrastructure.models import ManualOrder, PaymentEvent

STATUS_COLORS = {
    "pending": "orange",
    "paid_processing": "blue",
    "license_sent": "green",
    "license_created_email_failed": "red",
    "processed": "green",
    "ignored": "gray",
    "invalid": "gray",
    "error": "red",
    "received": "blue",
    "processing": "blue",
}


def colored_status(status: str):
    return format_html(
        '<span style="color: {};">{}</span>', STATUS_COLORS.get(status, "black"), status
    )


@admin.register(ManualOrder)
class ManualOrderAdmin(admin.ModelAdmin):
    """Admin interface for ManualOrder model. Completion goes through the API only."""

    list_display = [
        "reference",
        "method",
        "email",
        "amount",
        "status_display",
        "license_code",
        "invoice_number",
        "created_at",
    ]
    list_filter = ["status", "method", "created_at"]
    search_fields = ["reference", "email", "license_code", "invoice_number"]
    ordering = ["-created_at"]
    readonly_fields = [
        "id",
        "method",
        "email",
        "amount",
        "currency",
        "reference",
        "status",
        "license_code",
        "invoice_number",
        "paid_at",
        "completed_at",
        "created_at",
        "updated_at",
    ]

    fieldsets = (
        ("Order", {"fields": ("id", "reference", "method", "email", "amount", "currency")}),
        ("Status", {"fields": ("status", "last_error", "paid_at", "completed_at")}),
        ("Fulfillment", {"fields": ("license_code", "invoice_number")}),
        ("Timestamps", {"fields": ("created_at", "updated_at"), "classes": ("collapse",)}),
    )

    @admin.display(description="Status", ordering="status")
    def status_display(self, obj):
        return colored_status(obj.status)

    def has_add_permission(self, request):
        return False


@admin.register(PaymentEvent)
class PaymentEventAdmin(admin.ModelAdmin):
    """Admin interface for the payment event ledger (read only)."""

    list_display = [
        "id",
        "type",
        "status_display",
        "payment_reference",
        "license_code",
        "invoice_number",
        "received_at",
    ]
    list_filter = ["status", "type", "received_at"]
    search_fields = ["id", "payment_reference", "email", "license_code"]
    ordering = ["-received_at"]

    @admin.display(description="Status", ordering="status")
    def status_display(self, obj):
        return colored_status(obj.status)

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
