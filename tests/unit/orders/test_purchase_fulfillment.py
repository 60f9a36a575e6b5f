"""
Unit tests for PurchaseFulfillmentService.
"""

from datetime import datetime, timezone

import pytest

from billing.infrastructure.repositories.django_invoice_repository import invoice_year
from core.domain.events import utcnow
from core.domain.value_objects import LicenseSource
from licenses.domain.events import LicenseIssued
from orders.application.services.purchase_fulfillment import PurchaseRequest

PAID_AT = datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)


def this_year() -> int:
    return invoice_year(utcnow())


def number(sequence: int) -> str:
    return f"{sequence}/{this_year()}"


def stripe_request(payment_reference: str = "cs_test_1", paid_at: datetime = PAID_AT) -> PurchaseRequest:
    return PurchaseRequest(
        email="buyer@example.com",
        source=LicenseSource.STRIPE,
        method="stripe",
        payment_reference=payment_reference,
        paid_at=paid_at,
        amount_paid=14820,
        currency="EUR",
    )


@pytest.mark.asyncio
class TestPurchaseFulfillmentService:
    """Tests for the purchase pipeline."""

    async def test_issues_license_invoice_and_email(
        self, fulfillment, license_repository, invoice_repository, mail_sender
    ):
        result = await fulfillment.fulfill(stripe_request())

        assert result.license_created and result.invoice_created
        assert result.email_sent
        assert result.invoice_number == number(1)
        license = license_repository.licenses[result.license_code]
        assert license.expires_at == datetime(2027, 2, 1, 10, 0, tzinfo=timezone.utc)
        assert invoice_repository.invoices[0].license_code == result.license_code
        assert invoice_repository.invoices[0].paid_at == PAID_AT

        message = mail_sender.sent[0]
        assert message.to == "buyer@example.com"
        assert result.license_code in message.html_body
        assert [a.filename for a in message.attachments] == [f"Invoice_1-{this_year()}.pdf"]

    async def test_second_run_is_a_no_op(
        self, fulfillment, license_repository, invoice_repository, mail_sender, event_bus, collected
    ):
        collector = collected(LicenseIssued)
        first = await fulfillment.fulfill(stripe_request())

        again = await fulfillment.fulfill(stripe_request())

        assert again.already_processed
        assert again.license_code == first.license_code
        assert again.invoice_number == first.invoice_number
        assert len(license_repository.licenses) == 1
        assert len(invoice_repository.invoices) == 1
        assert len(mail_sender.sent) == 1
        assert len(collector.events) == 1

    async def test_retry_can_resend_email(self, fulfillment, mail_sender, invoice_repository):
        first = await fulfillment.fulfill(stripe_request())

        again = await fulfillment.fulfill(stripe_request(), notify_if_processed=True)

        assert not again.license_created and not again.invoice_created
        assert again.license_code == first.license_code
        assert len(invoice_repository.invoices) == 1
        assert len(mail_sender.sent) == 2

    async def test_email_failure_keeps_license_and_invoice(
        self, fulfillment, license_repository, invoice_repository, mail_sender
    ):
        mail_sender.fail = True

        result = await fulfillment.fulfill(stripe_request())

        assert result.email_sent is False
        assert result.email_error == "SMTP server unavailable"
        assert result.license_code in license_repository.licenses
        assert len(invoice_repository.invoices) == 1

    async def test_render_failure_sends_without_attachment(
        self, fulfillment, document_renderer, mail_sender
    ):
        document_renderer.fail = True

        result = await fulfillment.fulfill(stripe_request())

        assert result.email_sent
        assert mail_sender.sent[0].attachments == ()

    async def test_payments_get_distinct_licenses(self, fulfillment):
        first = await fulfillment.fulfill(stripe_request("cs_1"))
        second = await fulfillment.fulfill(stripe_request("cs_2"))

        assert first.license_code != second.license_code
        assert (first.invoice_number, second.invoice_number) == (number(1), number(2))

    async def test_late_payment_is_invoiced_in_the_current_year(
        self, fulfillment, invoice_repository
    ):
        request = stripe_request(paid_at=datetime(2019, 12, 31, 23, 0, tzinfo=timezone.utc))

        result = await fulfillment.fulfill(request)

        assert result.invoice_number == number(1)
        assert invoice_repository.invoices[0].paid_at == request.paid_at
