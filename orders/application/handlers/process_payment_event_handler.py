"""
ProcessPaymentEventHandler.

Handles trusted payment events delivered at least once by the provider.
"""

import logging
from typing import Optional

from core.domain.events import EventBus, utcnow
from core.domain.exceptions import InvalidPaymentEventError
from core.domain.value_objects import LicenseSource, PaymentEventStatus
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import payment_events_total
from orders.application.commands.process_payment_event import ProcessPaymentEventCommand
from orders.application.dto.order_dto import PaymentEventResultDTO
from orders.application.services.purchase_fulfillment import (
    PurchaseFulfillmentService,
    PurchaseRequest,
)
from orders.domain.events import PaymentEventProcessed
from orders.domain.payment_event import CHECKOUT_COMPLETED, PaymentEvent, parse_completed_checkout
from orders.ports.payment_event_repository import PaymentEventRepository

logger = logging.getLogger(__name__)

STRIPE_METHOD = "stripe"


class ProcessPaymentEventHandler:
    """Handler for ProcessPaymentEventCommand."""

    def __init__(
        self,
        payment_event_repository: PaymentEventRepository,
        fulfillment: PurchaseFulfillmentService,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories."""
        self.payment_event_repository = payment_event_repository
        self.fulfillment = fulfillment
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: ProcessPaymentEventCommand) -> PaymentEventResultDTO:
        """
        Handle process payment event command.

        Redeliveries of an event that already reached a final status, or
        that another delivery is processing right now, are answered with
        duplicate=True and no side effects. Events of other types and
        unpaid checkouts are recorded as ignored; completed checkouts with
        an unusable payload are recorded as invalid.

        Args:
            command: ProcessPaymentEventCommand

        Returns:
            PaymentEventResultDTO

        Raises:
            Exception: Any unexpected failure, after marking the event as error
        """
        now = utcnow()
        event, _ = await self.payment_event_repository.record_received(
            command.event_id, command.event_type, now
        )
        if event.is_final:
            return self._duplicate(event)

        event, claimed = await self.payment_event_repository.claim(event.id, now)
        if not claimed:
            return self._duplicate(event)

        if command.event_type != CHECKOUT_COMPLETED:
            return await self._finish(event, PaymentEventStatus.IGNORED, reason="unhandled_type")

        try:
            checkout = parse_completed_checkout(command.payload)
        except InvalidPaymentEventError as exc:
            logger.warning("Payment event %s has an unusable payload: %s", event.id, exc.message)
            return await self._finish(
                event, PaymentEventStatus.INVALID, reason="invalid_payload", error=exc.message
            )

        if not checkout.paid:
            return await self._finish(
                event,
                PaymentEventStatus.IGNORED,
                reason="not_paid",
                payment_reference=checkout.payment_reference,
            )

        try:
            result = await self.fulfillment.fulfill(
                PurchaseRequest(
                    email=checkout.email,
                    source=LicenseSource.STRIPE,
                    method=STRIPE_METHOD,
                    payment_reference=checkout.payment_reference,
                    paid_at=checkout.paid_at or event.received_at,
                    amount_paid=checkout.amount_total,
                    currency=checkout.currency,
                )
            )
        except Exception as exc:
            await self._finish(
                event,
                PaymentEventStatus.ERROR,
                error=getattr(exc, "message", None) or str(exc) or exc.__class__.__name__,
                payment_reference=checkout.payment_reference,
                email=checkout.email,
            )
            logger.error("Payment event %s failed", event.id, exc_info=True)
            raise

        status = (
            PaymentEventStatus.LICENSE_CREATED_EMAIL_FAILED
            if result.email_error
            else PaymentEventStatus.PROCESSED
        )
        return await self._finish(
            event,
            status,
            reason="already_processed" if result.already_processed else None,
            error=result.email_error,
            license_code=result.license_code,
            invoice_number=result.invoice_number,
            payment_reference=checkout.payment_reference,
            email=checkout.email,
        )

    def _duplicate(self, event: PaymentEvent) -> PaymentEventResultDTO:
        logger.info("Payment event %s already %s", event.id, event.status.value)
        payment_events_total.labels(status="duplicate").inc()
        return self._to_dto(event, duplicate=True)

    async def _finish(self, event: PaymentEvent, status: PaymentEventStatus, **outcome) -> PaymentEventResultDTO:
        event = await self.payment_event_repository.save(event.finish(status, utcnow(), **outcome))
        payment_events_total.labels(status=status.value).inc()
        logger.info(
            "Payment event processed",
            extra={
                "payment_event_id": event.id,
                "status": status.value,
                "reason": event.reason,
                "payment_reference": event.payment_reference,
            },
        )
        if status != PaymentEventStatus.ERROR:
            await self.event_bus.publish(
                PaymentEventProcessed(
                    payment_event_id=event.id,
                    status=status.value,
                    payment_reference=event.payment_reference,
                )
            )
        return self._to_dto(event)

    @staticmethod
    def _to_dto(event: PaymentEvent, duplicate: bool = False) -> PaymentEventResultDTO:
        return PaymentEventResultDTO(
            event_id=event.id,
            status=event.status.value,
            duplicate=duplicate,
            license_code=event.license_code,
            invoice_number=event.invoice_number,
        )
