"""
Django admin configuration for activation attempts.
"""
from django.contrib import admin

from activations.infrastructure.models import ActivationAttempt


@admin.register(ActivationAttempt)
class ActivationAttemptAdmin(admin.ModelAdmin):
    """Read-only view of the runtime check log."""

    list_display = ["code", "device_id", "operation", "result", "created_at"]
    list_filter = ["operation", "result", "created_at"]
    search_fields = ["code", "device_id"]
    readonly_fields = ["id", "code", "device_id", "operation", "result", "created_at"]
    ordering = ["-created_at"]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
