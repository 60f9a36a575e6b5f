"""
Unit tests for completing manual orders and resending purchase emails.
"""

import asyncio
import uuid
from decimal import Decimal

import pytest

from core.domain.events import utcnow
from core.domain.exceptions import (
    LicenseCodeExhaustedError,
    NotificationError,
    OrderNotFoundError,
    OrderNotPendingError,
    OrderNotResendableError,
)
from core.domain.value_objects import LicenseSource, OrderStatus, PaymentMethod
from orders.application.commands.manual_order import (
    CompleteManualOrderCommand,
    ResendPurchaseEmailCommand,
)
from orders.application.handlers.complete_manual_order_handler import CompleteManualOrderHandler
from orders.application.handlers.resend_purchase_email_handler import ResendPurchaseEmailHandler
from orders.application.services.purchase_fulfillment import PurchaseFulfillmentService
from orders.domain.events import ManualOrderCompleted
from orders.domain.order import ManualOrder


@pytest.fixture
def pending_order(order_repository):
    """Fixture for a stored pending Bizum order."""
    order = ManualOrder.create(
        method=PaymentMethod.BIZUM,
        email="buyer@example.com",
        amount=Decimal("148.20"),
        currency="EUR",
        reference="LIC-BIZ-ABC123",
        now=utcnow(),
    )
    order_repository.orders[order.id] = order
    return order


@pytest.fixture
def handler(order_repository, fulfillment, event_bus):
    """Fixture for a CompleteManualOrderHandler wired to the fakes."""
    return CompleteManualOrderHandler(order_repository, fulfillment, event_bus)


@pytest.mark.asyncio
class TestCompleteManualOrderHandler:
    """Tests for CompleteManualOrderHandler."""

    async def test_completes_order(
        self, handler, pending_order, order_repository, license_repository, mail_sender, collected
    ):
        collector = collected(ManualOrderCompleted)

        dto = await handler.handle(CompleteManualOrderCommand(pending_order.id))

        assert dto.status == "license_sent"
        assert dto.email_sent is True
        assert dto.warning is None
        license = license_repository.licenses[dto.license_code]
        assert license.source == LicenseSource.MANUAL
        assert license.payment_reference == str(pending_order.id)
        stored = order_repository.orders[pending_order.id]
        assert stored.status == OrderStatus.LICENSE_SENT
        assert stored.invoice_number == dto.invoice_number
        assert len(mail_sender.sent) == 1
        assert len(collector.events) == 1

    async def test_second_completion_is_rejected(self, handler, pending_order, license_repository):
        await handler.handle(CompleteManualOrderCommand(pending_order.id))

        with pytest.raises(OrderNotPendingError):
            await handler.handle(CompleteManualOrderCommand(pending_order.id))

        assert len(license_repository.licenses) == 1

    async def test_concurrent_completions(self, handler, pending_order, license_repository):
        results = await asyncio.gather(
            handler.handle(CompleteManualOrderCommand(pending_order.id)),
            handler.handle(CompleteManualOrderCommand(pending_order.id)),
            return_exceptions=True,
        )

        assert sum(isinstance(r, OrderNotPendingError) for r in results) == 1
        assert len(license_repository.licenses) == 1

    async def test_unknown_order(self, handler, pending_order):
        with pytest.raises(OrderNotFoundError):
            await handler.handle(CompleteManualOrderCommand(uuid.uuid4()))

    async def test_email_failure_is_reported(
        self, handler, pending_order, order_repository, mail_sender
    ):
        mail_sender.fail = True

        dto = await handler.handle(CompleteManualOrderCommand(pending_order.id))

        assert dto.status == "license_created_email_failed"
        assert dto.email_sent is False
        assert dto.warning
        assert order_repository.orders[pending_order.id].last_error == "SMTP server unavailable"

    async def test_failure_releases_order(
        self,
        pending_order,
        order_repository,
        license_repository,
        invoice_repository,
        mail_sender,
        document_renderer,
        pricing,
        event_bus,
        license_factory,
    ):
        fulfillment = PurchaseFulfillmentService(
            license_repository,
            invoice_repository,
            mail_sender,
            document_renderer,
            pricing,
            event_bus=event_bus,
            code_generator=lambda: "ABCD-EFGH-JKMN",
            support_email="support@example.com",
        )
        taken = license_factory(code="ABCD-EFGH-JKMN", payment_reference="cs_other")
        license_repository.licenses[taken.code] = taken
        handler = CompleteManualOrderHandler(order_repository, fulfillment, event_bus)

        with pytest.raises(LicenseCodeExhaustedError):
            await handler.handle(CompleteManualOrderCommand(pending_order.id))

        stored = order_repository.orders[pending_order.id]
        assert stored.status == OrderStatus.PENDING
        assert stored.last_error


@pytest.mark.asyncio
class TestResendPurchaseEmailHandler:
    """Tests for ResendPurchaseEmailHandler."""

    @pytest.fixture
    def resend(self, order_repository, license_repository, invoice_repository, fulfillment):
        return ResendPurchaseEmailHandler(
            order_repository, license_repository, invoice_repository, fulfillment
        )

    async def test_resends_after_failure(
        self, handler, resend, pending_order, order_repository, mail_sender
    ):
        mail_sender.fail = True
        await handler.handle(CompleteManualOrderCommand(pending_order.id))
        mail_sender.fail = False

        dto = await resend.handle(ResendPurchaseEmailCommand(pending_order.id))

        assert dto.status == "license_sent"
        assert dto.last_error is None
        assert len(mail_sender.sent) == 1
        assert mail_sender.sent[0].attachments

    async def test_pending_order_is_not_resendable(self, resend, pending_order):
        with pytest.raises(OrderNotResendableError):
            await resend.handle(ResendPurchaseEmailCommand(pending_order.id))

    async def test_resend_failure_keeps_status(
        self, handler, resend, pending_order, order_repository, mail_sender
    ):
        mail_sender.fail = True
        await handler.handle(CompleteManualOrderCommand(pending_order.id))

        with pytest.raises(NotificationError):
            await resend.handle(ResendPurchaseEmailCommand(pending_order.id))

        assert (
            order_repository.orders[pending_order.id].status
            == OrderStatus.LICENSE_CREATED_EMAIL_FAILED
        )
