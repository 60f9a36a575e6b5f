"""
Integration tests for operational endpoints and commands.
"""

from datetime import timedelta
from io import StringIO

import pytest
from asgiref.sync import async_to_sync
from django.core.management import call_command

from core.domain.events import utcnow
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)


@pytest.mark.django_db
@pytest.mark.integration
class TestExpiryCommand:
    """Tests for the check_license_expirations command."""

    def _store_overdue(self, license_factory):
        paid_at = utcnow() - timedelta(days=400)
        return async_to_sync(DjangoLicenseRepository().insert)(
            license_factory(paid_at=paid_at, now=paid_at)
        )

    def test_marks_overdue_licenses(self, license_factory):
        license = self._store_overdue(license_factory)
        out = StringIO()

        call_command("check_license_expirations", stdout=out)

        assert "marked 1 license(s)" in out.getvalue()
        assert LicenseModel.objects.get(code=license.code).status == "expired"

    def test_dry_run(self, license_factory):
        license = self._store_overdue(license_factory)
        out = StringIO()

        call_command("check_license_expirations", "--dry-run", stdout=out)

        assert license.code in out.getvalue()
        assert LicenseModel.objects.get(code=license.code).status == "active"


@pytest.mark.django_db
@pytest.mark.integration
class TestHealthEndpoints:
    """Tests for health, readiness and metrics."""

    def test_health(self, client):
        assert client.get("/health/").status_code == 200

    def test_health_db(self, client):
        assert client.get("/health/db/").status_code == 200

    def test_ready(self, client):
        assert client.get("/ready/").status_code == 200

    def test_metrics(self, client):
        response = client.get("/metrics")

        assert response.status_code == 200
        assert b"# HELP" in response.content
