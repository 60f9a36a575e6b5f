"""
Integration tests for the purchase API: payment webhook and manual orders.
"""

from datetime import datetime
from datetime import timezone as dt_timezone

import pytest
from django.core import mail
from django.test import override_settings
from django.utils import timezone

from billing.infrastructure.models import Invoice as InvoiceModel
from billing.infrastructure.models import InvoiceCounter
from licenses.infrastructure.models import License as LicenseModel
from orders.infrastructure.models import ManualOrder as ManualOrderModel
from orders.infrastructure.models import PaymentEvent as PaymentEventModel


@pytest.mark.django_db
@pytest.mark.integration
class TestPaymentWebhook:
    """Tests for POST /api/v1/webhook/payment."""

    def test_completed_checkout_issues_license_and_invoice(self, post_webhook, checkout_event):
        response = post_webhook(checkout_event())

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["eventId"] == "evt_1"
        assert data["status"] == "processed"
        assert data["duplicate"] is False

        license = LicenseModel.objects.get(code=data["licenseCode"])
        assert license.email == "buyer@example.com"
        assert license.status == "active"
        invoice = InvoiceModel.objects.get(payment_reference="cs_test_1")
        assert str(invoice.total) == "148.20"
        assert invoice.invoice_number == data["invoiceNumber"]

        assert len(mail.outbox) == 1
        assert data["licenseCode"] in mail.outbox[0].body
        assert mail.outbox[0].attachments

    def test_redelivery_is_duplicate(self, post_webhook, checkout_event):
        first = post_webhook(checkout_event()).json()

        response = post_webhook(checkout_event())

        assert response.status_code == 200
        assert response.json()["duplicate"] is True
        assert response.json()["licenseCode"] == first["licenseCode"]
        assert LicenseModel.objects.count() == 1
        assert InvoiceModel.objects.count() == 1
        assert len(mail.outbox) == 1

    def test_unpaid_checkout_is_ignored(self, post_webhook, checkout_event):
        response = post_webhook(checkout_event(paid=False))

        assert response.status_code == 200
        assert response.json()["status"] == "ignored"
        assert LicenseModel.objects.count() == 0

    def test_bad_signature(self, post_webhook, checkout_event):
        response = post_webhook(checkout_event(), signature="0" * 64)

        assert response.status_code == 400
        assert response.json() == {
            "ok": False,
            "code": "INVALID_SIGNATURE",
            "message": "Invalid webhook signature",
        }
        assert PaymentEventModel.objects.count() == 0

    def test_missing_signature(self, api_client, checkout_event):
        response = api_client.post("/api/v1/webhook/payment", checkout_event(), format="json")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_SIGNATURE"

    @override_settings(PAYMENT_WEBHOOK_SECRET="")
    def test_secret_not_configured(self, post_webhook, checkout_event):
        response = post_webhook(checkout_event())

        assert response.status_code == 500
        assert response.json()["code"] == "WEBHOOK_SECRET_NOT_SET"

    def test_malformed_envelope(self, post_webhook):
        response = post_webhook({"type": "checkout.session.completed"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_EVENT"

    def test_invalid_payload_is_recorded_and_acknowledged(self, post_webhook, checkout_event):
        event = checkout_event()
        event["payload"]["email"] = "not-an-email"

        first = post_webhook(event)
        again = post_webhook(event)

        assert first.status_code == 200
        assert first.json()["status"] == "invalid"
        assert first.json()["duplicate"] is False
        assert again.status_code == 200
        assert again.json()["duplicate"] is True
        stored = PaymentEventModel.objects.get(id="evt_1")
        assert stored.status == "invalid"
        assert stored.error == "Event has no valid customer email"
        assert LicenseModel.objects.count() == 0

    def test_old_payment_date_does_not_pick_the_invoice_year(self, post_webhook, checkout_event):
        event = checkout_event()
        event["payload"]["paidAt"] = "2019-12-31T23:00:00Z"

        response = post_webhook(event)

        assert response.status_code == 200
        invoice = InvoiceModel.objects.get(payment_reference="cs_test_1")
        assert invoice.year == timezone.localtime().year
        assert invoice.invoice_number == f"1/{invoice.year}"
        assert invoice.paid_at == datetime(2019, 12, 31, 23, 0, tzinfo=dt_timezone.utc)
        assert not InvoiceCounter.objects.filter(year__lt=invoice.year).exists()


@pytest.mark.django_db
@pytest.mark.integration
class TestCreateManualOrder:
    """Tests for POST /api/v1/orders/manual."""

    def test_create_bizum_order(self, api_client):
        response = api_client.post(
            "/api/v1/orders/manual",
            {"method": "bizum", "email": "Buyer@Example.com"},
            format="json",
        )

        assert response.status_code == 201
        data = response.json()
        assert data["ok"] is True
        assert data["reference"].startswith("LIC-BIZ-")
        assert data["amount"] == 148.2
        assert data["currency"] == "EUR"
        assert data["instructions"]["bizumPhone"] == "600000000"
        order = ManualOrderModel.objects.get(id=data["orderId"])
        assert order.status == "pending"
        assert order.email == "buyer@example.com"

    def test_create_transfer_order(self, api_client):
        response = api_client.post(
            "/api/v1/orders/manual", {"method": "transfer", "email": "b@example.com"}, format="json"
        )

        assert response.status_code == 201
        assert response.json()["instructions"]["bankIban"] == "ES0000000000000000000000"

    def test_invalid_method(self, api_client):
        response = api_client.post(
            "/api/v1/orders/manual", {"method": "cash", "email": "b@example.com"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_METHOD"
        assert ManualOrderModel.objects.count() == 0

    def test_invalid_email(self, api_client):
        response = api_client.post(
            "/api/v1/orders/manual", {"method": "bizum", "email": "nope"}, format="json"
        )

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_EMAIL"

    @override_settings(BIZUM_PHONE="")
    def test_unconfigured_method(self, api_client):
        response = api_client.post(
            "/api/v1/orders/manual", {"method": "bizum", "email": "b@example.com"}, format="json"
        )

        assert response.status_code == 500
        assert response.json()["code"] == "BIZUM_PHONE_NOT_SET"
