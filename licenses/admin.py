"""
Django admin configuration for licenses app.

Staff revoke or refund licenses here; those statuses are never set by
the API.
"""
import json

from django.contrib import admin
from django.utils.html import format_html

from licenses.infrastructure.models import AuditLog, License


@admin.register(License)
class LicenseAdmin(admin.ModelAdmin):
    """Admin interface for License model."""

    list_display = [
        "code",
        "email",
        "status_display",
        "source",
        "device_id",
        "expires_at",
        "created_at",
    ]
    list_filter = ["status", "source", "expires_at", "created_at"]
    search_fields = ["code", "email", "payment_reference", "device_id"]
    readonly_fields = [
        "code",
        "source",
        "payment_reference",
        "amount_total",
        "currency",
        "created_at",
        "updated_at",
        "activated_at",
        "last_validated_at",
    ]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("code", "email", "status", "source", "payment_reference"),
            },
        ),
        (
            "Payment",
            {
                "fields": ("paid_at", "amount_total", "currency", "expires_at"),
            },
        ),
        (
            "Device",
            {
                "fields": (
                    "device_id",
                    "activated_at",
                    "last_validated_at",
                    "device_change_used",
                    "device_changed_at",
                    "previous_device_id",
                    "device_change_reason",
                ),
            },
        ),
        (
            "Recovery",
            {
                "fields": ("recovery_used", "recovery_used_at"),
            },
        ),
        (
            "Timestamps",
            {
                "fields": ("created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def status_display(self, obj):
        """Display status with color coding."""
        colors = {
            "active": "green",
            "used": "blue",
            "expired": "gray",
            "revoked": "red",
            "refunded": "orange",
        }
        color = colors.get(obj.status, "black")
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.status.upper(),
        )

    status_display.short_description = "Status"


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    """Admin interface for AuditLog model."""

    list_display = ["action", "entity_type", "entity_id", "actor", "created_at"]
    list_filter = ["action", "entity_type", "created_at"]
    search_fields = ["actor", "entity_id"]
    readonly_fields = ["id", "event_id", "created_at", "changes_display"]
    fieldsets = (
        (
            "Basic Information",
            {
                "fields": ("id", "event_id", "entity_type", "entity_id", "action"),
            },
        ),
        (
            "Details",
            {
                "fields": ("actor", "changes_display", "created_at"),
            },
        ),
    )

    def changes_display(self, obj):
        """Display changes in a formatted way."""
        if obj.changes:
            return format_html(
                '<pre style="background: #f5f5f5; padding: 10px; '
                'border-radius: 4px; overflow-x: auto;">{}</pre>',
                json.dumps(obj.changes, indent=2),
            )
        return "-"

    changes_display.short_description = "Changes"

    def has_add_permission(self, request):
        """Audit logs are read-only."""
        return False

    def has_change_permission(self, request, obj=None):
        """Audit logs are read-only."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Audit logs should not be deleted."""
        return False
