"""
Integration tests for the runtime license API.
"""

from datetime import timedelta

import pytest
from asgiref.sync import async_to_sync
from django.core import mail

from activations.infrastructure.models import ActivationAttempt
from api.v1.license.views import LicenseCheckView
from core.domain.events import utcnow
from licenses.infrastructure.models import License as LicenseModel
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)


@pytest.fixture
def stored_license(db, license_factory):
    """Fixture for a license issued through the Django repository."""

    def store(**kwargs):
        return async_to_sync(DjangoLicenseRepository().insert)(license_factory(**kwargs))

    return store


def check(api_client, operation: str, code: str, device_id):
    return api_client.post(
        f"/api/v1/license/{operation}", {"code": code, "deviceId": device_id}, format="json"
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestActivateLicense:
    """Tests for POST /api/v1/license/activate."""

    def test_first_activation(self, api_client, stored_license):
        license = stored_license()

        response = check(api_client, "activate", license.code, "pc-1")

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["code"] == license.code
        assert data["status"] == "used"
        assert data["result"] == "ok_first_use"
        assert data["firstActivation"] is True
        assert data["deviceChangeAvailable"] is True
        assert LicenseModel.objects.get(code=license.code).device_id == "pc-1"

    def test_same_device_again(self, api_client, stored_license):
        license = stored_license()
        check(api_client, "activate", license.code, "pc-1")

        response = check(api_client, "activate", license.code.lower(), "pc-1")

        assert response.status_code == 200
        assert response.json()["firstActivation"] is False

    def test_other_device(self, api_client, stored_license):
        license = stored_license()
        check(api_client, "activate", license.code, "pc-1")

        response = check(api_client, "activate", license.code, "pc-2")

        assert response.status_code == 403
        assert response.json()["code"] == "DEVICE_MISMATCH"
        assert response.json()["ok"] is False

    def test_expired(self, api_client, stored_license):
        paid_at = utcnow() - timedelta(days=366)
        license = stored_license(paid_at=paid_at, now=paid_at)

        response = check(api_client, "activate", license.code, "pc-1")

        assert response.status_code == 403
        assert response.json()["code"] == "EXPIRED"
        assert LicenseModel.objects.get(code=license.code).status == "expired"

    def test_unknown_code(self, api_client):
        response = check(api_client, "activate", "ZZZZ-ZZZZ-ZZZZ", "pc-1")

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_missing_device(self, api_client, stored_license):
        license = stored_license()

        response = check(api_client, "activate", license.code, "")

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_DEVICE"

    def test_missing_code(self, api_client):
        response = check(api_client, "activate", "", "pc-1")

        assert response.status_code == 400
        assert response.json()["code"] == "MISSING_CODE"

    def test_attempts_are_logged(self, api_client, stored_license):
        license = stored_license()
        check(api_client, "activate", license.code, "pc-1")
        check(api_client, "activate", license.code, "pc-2")

        results = ActivationAttempt.objects.filter(code=license.code).values_list(
            "result", flat=True
        )
        assert sorted(results) == ["ok_first_use", "used_by_other"]


@pytest.mark.django_db
@pytest.mark.integration
class TestValidateAndInfo:
    """Tests for POST /api/v1/license/validate and /info."""

    def test_validate_keeps_expiry(self, api_client, stored_license):
        license = stored_license()
        check(api_client, "activate", license.code, "pc-1")

        response = check(api_client, "validate", license.code, "pc-1")

        assert response.status_code == 200
        stored = LicenseModel.objects.get(code=license.code)
        assert stored.last_validated_at is not None
        assert stored.expires_at == license.expires_at

    def test_info_does_not_bind(self, api_client, stored_license):
        license = stored_license()

        response = check(api_client, "info", license.code, "pc-1")

        assert response.status_code == 200
        assert response.json()["result"] == "ok_unbound"
        assert response.json()["activatedAt"] is None
        assert LicenseModel.objects.get(code=license.code).device_id is None


@pytest.mark.django_db
@pytest.mark.integration
class TestRecoverLicense:
    """Tests for POST /api/v1/license/recover."""

    def test_recovery_is_single_use(self, api_client, stored_license):
        license = stored_license()

        first = api_client.post(
            "/api/v1/license/recover", {"email": "buyer@example.com"}, format="json"
        )
        second = api_client.post(
            "/api/v1/license/recover", {"email": "buyer@example.com"}, format="json"
        )

        assert first.status_code == 200
        assert first.json()["ok"] is True
        assert len(mail.outbox) == 1
        assert license.code in mail.outbox[0].body
        assert second.status_code == 403
        assert second.json()["code"] == "RECOVERY_ALREADY_USED"

    def test_unknown_email_looks_the_same(self, api_client, stored_license):
        stored_license()

        known = api_client.post(
            "/api/v1/license/recover", {"email": "buyer@example.com"}, format="json"
        )
        unknown = api_client.post(
            "/api/v1/license/recover", {"email": "stranger@example.com"}, format="json"
        )

        assert unknown.status_code == 200
        assert unknown.json()["message"] == known.json()["message"]
        assert len(mail.outbox) == 1

    def test_invalid_email(self, api_client):
        response = api_client.post("/api/v1/license/recover", {"email": "nope"}, format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_EMAIL"


def test_check_view_base_needs_a_handler():
    with pytest.raises(TypeError):
        LicenseCheckView()
