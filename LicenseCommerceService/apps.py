"""
App configuration for License Commerce Service.
"""

import logging
import os
import sys

from django.apps import AppConfig

logger = logging.getLogger(__name__)

SKIPPED_COMMANDS = ["migrate", "makemigrations", "collectstatic", "check"]


class LicenseCommerceServiceConfig(AppConfig):
    """App configuration for LicenseCommerceService."""

    name = "LicenseCommerceService"
    verbose_name = "License Commerce Service"

    def ready(self):
        """Called when Django starts."""
        from core.infrastructure.event_handlers import register_event_handlers

        # Handlers are idempotent per type, so double registration by the
        # autoreloader is harmless
        register_event_handlers()

        if len(sys.argv) > 1 and sys.argv[1] in SKIPPED_COMMANDS:
            return
        # Django's reloader runs the project twice; only the child serves
        if os.environ.get("RUN_MAIN") == "false":
            return
        self.setup_observability()

    def setup_observability(self):
        """Setup tracing after apps are ready."""
        from core.instrumentation import setup_opentelemetry

        try:
            setup_opentelemetry()
        except Exception as e:  # pylint: disable=broad-exception-caught
            logger.warning(f"Failed to setup OpenTelemetry: {e}")
