"""
Django implementation of PaymentEventRepository port.
"""

from datetime import datetime
from typing import Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import IntegrityError

from core.domain.value_objects import PaymentEventStatus
from core.infrastructure.database import run_in_transaction
from orders.domain.payment_event import PaymentEvent
from orders.infrastructure.models import PaymentEvent as PaymentEventModel
from orders.ports.payment_event_repository import PaymentEventRepository


class DjangoPaymentEventRepository(PaymentEventRepository):
    """Django ORM implementation of PaymentEventRepository."""

    def _to_domain(self, model: PaymentEventModel) -> PaymentEvent:
        return PaymentEvent(
            id=model.id,
            type=model.type,
            status=PaymentEventStatus(model.status),
            received_at=model.received_at,
            payment_reference=model.payment_reference,
            email=model.email,
            license_code=model.license_code,
            invoice_number=model.invoice_number,
            reason=model.reason,
            error=model.error,
            claimed_at=model.claimed_at,
            processed_at=model.processed_at,
        )

    @sync_to_async
    def record_received(
        self, event_id: str, event_type: str, now: datetime
    ) -> Tuple[PaymentEvent, bool]:
        """Record an upstream event by id, once."""
        try:
            model, created = run_in_transaction(
                PaymentEventModel.objects.get_or_create,
                id=event_id,
                defaults={
                    "type": event_type,
                    "status": PaymentEventStatus.RECEIVED.value,
                    "received_at": now,
                },
            )
        except IntegrityError:
            # Concurrent redelivery inserted the same id first
            model, created = PaymentEventModel.objects.get(id=event_id), False
        return self._to_domain(model), created

    @sync_to_async
    def claim(self, event_id: str, now: datetime) -> Tuple[PaymentEvent, bool]:
        """Claim a recorded event for processing, under a row lock."""

        def _claim() -> Tuple[PaymentEvent, bool]:
            model = PaymentEventModel.objects.select_for_update().get(id=event_id)
            event = self._to_domain(model)
            if not event.can_claim(now):
                return event, False
            claimed = event.claim(now)
            model.status = claimed.status.value
            model.claimed_at = claimed.claimed_at
            model.save(update_fields=["status", "claimed_at"])
            return claimed, True

        return run_in_transaction(_claim)

    @sync_to_async
    def find_by_id(self, event_id: str) -> Optional[PaymentEvent]:
        model = PaymentEventModel.objects.filter(id=event_id).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def save(self, event: PaymentEvent) -> PaymentEvent:
        """Persist the processing outcome of an event."""
        PaymentEventModel.objects.filter(id=event.id).update(
            status=event.status.value,
            payment_reference=event.payment_reference,
            email=event.email,
            license_code=event.license_code,
            invoice_number=event.invoice_number,
            reason=event.reason,
            error=event.error,
            processed_at=event.processed_at,
        )
        return event
