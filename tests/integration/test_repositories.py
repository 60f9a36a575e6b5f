"""
Integration tests for repository implementations.

Repositories expose coroutines backed by sync_to_async; the tests drive
them through async_to_sync so every query runs on the test's database
connection.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from asgiref.sync import async_to_sync
from django.utils.timezone import now as timezone_now

from activations.domain.services import LicenseActivationPolicy
from billing.domain.invoice import InvoiceDraft, InvoiceNumber
from billing.infrastructure.models import InvoiceCounter
from billing.infrastructure.repositories.django_invoice_repository import (
    DjangoInvoiceRepository,
    invoice_year,
)
from core.domain.exceptions import (
    DeviceMismatchError,
    LicenseAlreadyIssuedError,
    LicenseCodeCollisionError,
    OrderNotPendingError,
)
from core.domain.value_objects import LicenseStatus, OrderStatus, PaymentEventStatus, PaymentMethod
from licenses.infrastructure.repositories.django_license_repository import (
    DjangoLicenseRepository,
)
from orders.domain.order import ManualOrder
from orders.domain.payment_event import CLAIM_LEASE
from orders.infrastructure.repositories.django_order_repository import DjangoManualOrderRepository
from orders.infrastructure.repositories.django_payment_event_repository import (
    DjangoPaymentEventRepository,
)

NOW = datetime(2026, 4, 2, 12, 0, tzinfo=timezone.utc)


def run(coroutine_function, *args, **kwargs):
    return async_to_sync(coroutine_function)(*args, **kwargs)


def invoice_draft(payment_reference: str, **kwargs) -> InvoiceDraft:
    return InvoiceDraft(
        email="buyer@example.com",
        base=Decimal("130.00"),
        iva=Decimal("27.30"),
        ret=Decimal("9.10"),
        total=Decimal("148.20"),
        iva_percent=Decimal("21"),
        retention_percent=Decimal("7"),
        currency="EUR",
        method="stripe",
        source="stripe",
        payment_reference=payment_reference,
        **kwargs,
    )


@pytest.mark.django_db
@pytest.mark.integration
class TestLicenseRepository:
    """Integration tests for DjangoLicenseRepository."""

    def test_insert_and_find(self, license_factory):
        repository = DjangoLicenseRepository()
        license = license_factory(now=NOW)

        run(repository.insert, license)

        found = run(repository.find_by_code, license.code)
        assert found is not None
        assert found.email == "buyer@example.com"
        assert found.status == LicenseStatus.ACTIVE
        assert found.expires_at == license.expires_at
        assert run(repository.exists, license.code) is True
        assert run(repository.find_by_payment_reference, license.source, "cs_test_1").code == license.code
        assert [lic.code for lic in run(repository.find_by_email, "BUYER@example.com")] == [license.code]

    def test_find_not_found(self):
        assert run(DjangoLicenseRepository().find_by_code, "ZZZZ-ZZZZ-ZZZZ") is None

    def test_duplicate_code(self, license_factory):
        repository = DjangoLicenseRepository()
        run(repository.insert, license_factory(now=NOW))

        with pytest.raises(LicenseCodeCollisionError):
            run(repository.insert, license_factory(payment_reference="cs_other", now=NOW))

    def test_one_license_per_payment(self, license_factory):
        repository = DjangoLicenseRepository()
        first = run(repository.insert, license_factory(now=NOW))

        with pytest.raises(LicenseAlreadyIssuedError) as exc_info:
            run(repository.insert, license_factory(code="BBBB-BBBB-BBBB", now=NOW))

        assert exc_info.value.existing_code == first.code

    def test_apply_persists_changes(self, license_factory):
        repository = DjangoLicenseRepository()
        license = run(repository.insert, license_factory(now=NOW))

        outcome = run(repository.apply, license.code, LicenseActivationPolicy.activate("pc-1", NOW))

        assert outcome.ok
        stored = run(repository.find_by_code, license.code)
        assert stored.device_id == "pc-1"
        assert stored.status == LicenseStatus.USED

    def test_failed_apply_still_persists_expiry(self, license_factory):
        repository = DjangoLicenseRepository()
        license = run(repository.insert, license_factory(now=NOW))
        later = license.expires_at + timedelta(days=1)

        outcome = run(repository.apply, license.code, LicenseActivationPolicy.activate("pc-1", later))

        assert not outcome.ok
        assert run(repository.find_by_code, license.code).status == LicenseStatus.EXPIRED

    def test_failed_apply_without_side_effect(self, license_factory):
        repository = DjangoLicenseRepository()
        license = run(repository.insert, license_factory(now=NOW))
        run(repository.apply, license.code, LicenseActivationPolicy.activate("pc-1", NOW))

        outcome = run(repository.apply, license.code, LicenseActivationPolicy.activate("pc-2", NOW))

        assert isinstance(outcome.error, DeviceMismatchError)
        assert run(repository.find_by_code, license.code).device_id == "pc-1"

    def test_find_overdue_codes(self, license_factory):
        repository = DjangoLicenseRepository()
        old = run(
            repository.insert,
            license_factory(paid_at=NOW - timedelta(days=400), now=NOW - timedelta(days=400)),
        )
        run(repository.insert, license_factory(code="BBBB-BBBB-BBBB", payment_reference="cs_2", now=NOW))

        assert run(repository.find_overdue_codes, NOW) == [old.code]


@pytest.mark.django_db
@pytest.mark.integration
class TestInvoiceRepository:
    """Integration tests for DjangoInvoiceRepository."""

    def test_sequential_numbers(self):
        repository = DjangoInvoiceRepository()

        first, created = run(repository.issue, invoice_draft("cs_1"), NOW)
        second, _ = run(repository.issue, invoice_draft("cs_2"), NOW)

        assert created
        assert first.invoice_number == "1/2026"
        assert second.invoice_number == "2/2026"
        assert first.total == Decimal("148.20")

    def test_issue_is_idempotent_per_payment(self):
        repository = DjangoInvoiceRepository()
        first, _ = run(repository.issue, invoice_draft("cs_1"), NOW)

        again, created = run(repository.issue, invoice_draft("cs_1"), NOW)
        nxt, _ = run(repository.issue, invoice_draft("cs_2"), NOW)

        assert created is False
        assert again.invoice_number == first.invoice_number
        # No number was burnt by the duplicate
        assert nxt.invoice_number == "2/2026"

    def test_find_and_list(self):
        repository = DjangoInvoiceRepository()
        invoice, _ = run(repository.issue, invoice_draft("cs_1"), NOW)
        run(repository.issue, invoice_draft("cs_2"), NOW + timedelta(days=10))

        assert run(repository.find_by_number, InvoiceNumber.parse("1/2026")) == invoice
        assert run(repository.find_by_payment_reference, "stripe", "cs_1") == invoice
        listed = run(repository.list_between, NOW - timedelta(days=1), NOW + timedelta(days=1))
        assert [inv.invoice_number for inv in listed] == ["1/2026"]

    def test_numbering_per_year(self):
        repository = DjangoInvoiceRepository()
        run(repository.issue, invoice_draft("cs_1"), NOW)

        number = run(repository.next_invoice_number, datetime(2027, 3, 1, tzinfo=timezone.utc))

        assert number == InvoiceNumber(sequence=1, year=2027)

    def test_payment_time_does_not_pick_the_year(self):
        repository = DjangoInvoiceRepository()
        paid_at = datetime(2019, 12, 31, 23, 0, tzinfo=timezone.utc)

        invoice, _ = run(repository.issue, invoice_draft("cs_1", paid_at=paid_at), NOW)

        assert invoice.invoice_number == "1/2026"
        assert invoice.paid_at == paid_at
        assert list(InvoiceCounter.objects.values_list("year", flat=True)) == [2026]

    def test_issue_time_defaults_to_now(self):
        repository = DjangoInvoiceRepository()

        invoice, _ = run(repository.issue, invoice_draft("cs_1"))

        assert invoice.number.year == invoice_year(timezone_now())


@pytest.mark.django_db
@pytest.mark.integration
class TestOrderRepositories:
    """Integration tests for the order and payment event repositories."""

    def _order(self) -> ManualOrder:
        return ManualOrder.create(
            method=PaymentMethod.TRANSFER,
            email="buyer@example.com",
            amount=Decimal("148.20"),
            currency="EUR",
            reference="LIC-TRF-ABC123",
            now=NOW,
        )

    def test_create_claim_and_list(self):
        repository = DjangoManualOrderRepository()
        order = run(repository.create, self._order())

        claimed = run(repository.claim, order.id, NOW)

        assert claimed.status == OrderStatus.PAID_PROCESSING
        assert run(repository.find_by_id, order.id).status == OrderStatus.PAID_PROCESSING
        assert run(repository.list_by_status, OrderStatus.PENDING) == []
        with pytest.raises(OrderNotPendingError):
            run(repository.claim, order.id, NOW)

    def test_payment_event_recorded_once(self):
        repository = DjangoPaymentEventRepository()

        event, created = run(repository.record_received, "evt_1", "checkout.session.completed", NOW)
        again, created_again = run(
            repository.record_received, "evt_1", "checkout.session.completed", NOW
        )

        assert created and not created_again
        assert again.id == event.id

        run(repository.save, event.finish(PaymentEventStatus.PROCESSED, NOW, license_code="ABCD-EFGH-JKMN"))
        stored = run(repository.find_by_id, "evt_1")
        assert stored.status == PaymentEventStatus.PROCESSED
        assert stored.license_code == "ABCD-EFGH-JKMN"

    def test_payment_event_claimed_by_one_delivery(self):
        repository = DjangoPaymentEventRepository()
        run(repository.record_received, "evt_1", "checkout.session.completed", NOW)

        claimed, ok = run(repository.claim, "evt_1", NOW)
        _, ok_again = run(repository.claim, "evt_1", NOW + timedelta(minutes=1))

        assert ok and not ok_again
        assert claimed.status == PaymentEventStatus.PROCESSING
        stored = run(repository.find_by_id, "evt_1")
        assert stored.status == PaymentEventStatus.PROCESSING
        assert stored.claimed_at == NOW

        _, ok_after_lease = run(repository.claim, "evt_1", NOW + CLAIM_LEASE)
        assert ok_after_lease

        run(repository.save, claimed.finish(PaymentEventStatus.PROCESSED, NOW))
        _, ok_final = run(repository.claim, "evt_1", NOW + CLAIM_LEASE * 3)
        assert not ok_final
