"""
Django management command to check and mark expired licenses.

This command should be run periodically (e.g., via cron or scheduled task).
"""

import logging

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from licenses.application.handlers.expire_licenses_handler import ExpireLicensesHandler
from licenses.infrastructure.repositories.django_license_repository import DjangoLicenseRepository

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    """Command to check and mark expired licenses."""

    help = "Mark active or used licenses past their expiry as expired"

    def add_arguments(self, parser):
        """Add command arguments."""
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Dry run mode - don't actually update licenses",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=500,
            help="Maximum number of licenses to process",
        )

    def handle(self, *args, **options):
        """Execute the command."""
        handler = ExpireLicensesHandler(DjangoLicenseRepository())
        limit = options["limit"]

        if options["dry_run"]:
            codes = async_to_sync(handler.find_overdue)(limit=limit)
            self.stdout.write(f"Found {len(codes)} expired license(s)")
            # pylint: disable=no-member
            self.stdout.write(self.style.WARNING("DRY RUN - No changes will be made"))
            for code in codes[:10]:
                self.stdout.write(f"  - License {code}")
            return

        expired = async_to_sync(handler.handle)(limit=limit)
        if not expired:
            # pylint: disable=no-member
            self.stdout.write(self.style.SUCCESS("No expired licenses to update"))
            return
        self.stdout.write(
            # pylint: disable=no-member
            self.style.SUCCESS(f"Successfully marked {len(expired)} license(s) as expired")
        )
