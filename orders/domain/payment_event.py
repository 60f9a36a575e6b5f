"""
Trusted payment events.

The payment provider delivers events at least once. Each event is
recorded by its upstream id before any processing, so redeliveries of
an event that reached a final status are answered without side effects.
One delivery at a time claims an event for processing; a claim that is
never finished (a crashed worker) lapses after CLAIM_LEASE.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from core.domain.exceptions import InvalidPaymentEventError
from core.domain.value_objects import Email, PaymentEventStatus

CHECKOUT_COMPLETED = "checkout.session.completed"
EVENT_ERROR_MAX_LENGTH = 500
CLAIM_LEASE = timedelta(minutes=10)


@dataclass(frozen=True)
class PaymentEvent:
    """Processing record of one upstream event."""

    id: str
    type: str
    status: PaymentEventStatus
    received_at: datetime
    payment_reference: Optional[str] = None
    email: Optional[str] = None
    license_code: Optional[str] = None
    invoice_number: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[str] = None
    claimed_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None

    @property
    def is_final(self) -> bool:
        return self.status.is_final

    def can_claim(self, now: datetime) -> bool:
        """Whether a delivery may start processing this event now."""
        if self.is_final:
            return False
        if self.status == PaymentEventStatus.PROCESSING and self.claimed_at is not None:
            return now - self.claimed_at >= CLAIM_LEASE
        return True

    def claim(self, now: datetime) -> "PaymentEvent":
        """Mark the event as being processed by the current delivery."""
        return replace(self, status=PaymentEventStatus.PROCESSING, claimed_at=now)

    def finish(
        self,
        status: PaymentEventStatus,
        now: datetime,
        reason: Optional[str] = None,
        error: Optional[str] = None,
        license_code: Optional[str] = None,
        invoice_number: Optional[str] = None,
        payment_reference: Optional[str] = None,
        email: Optional[str] = None,
    ) -> "PaymentEvent":
        """Record the outcome of processing."""
        return replace(
            self,
            status=status,
            processed_at=now,
            reason=reason,
            error=error[:EVENT_ERROR_MAX_LENGTH] if error else None,
            license_code=license_code or self.license_code,
            invoice_number=invoice_number or self.invoice_number,
            payment_reference=payment_reference or self.payment_reference,
            email=email or self.email,
        )


@dataclass(frozen=True)
class CompletedCheckout:
    """Payload of a completed checkout event."""

    email: str
    amount_total: int  # Minor currency units
    currency: str
    payment_reference: str
    paid: bool
    paid_at: Optional[datetime] = None


def _parse_paid_at(value: Any) -> Optional[datetime]:
    if value in (None, ""):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise InvalidPaymentEventError(f"Invalid paidAt: {value}") from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_completed_checkout(payload: Dict[str, Any]) -> CompletedCheckout:
    """
    Parse the payload of a completed checkout.

    Args:
        payload: Event payload

    Returns:
        CompletedCheckout

    Raises:
        InvalidPaymentEventError: If a required field is missing or malformed
    """
    if not isinstance(payload, dict):
        raise InvalidPaymentEventError("Event payload must be an object")

    try:
        email = Email(str(payload.get("email") or "")).value
    except ValueError as exc:
        raise InvalidPaymentEventError("Event has no valid customer email") from exc

    payment_reference = str(payload.get("paymentRef") or "").strip()
    if not payment_reference:
        raise InvalidPaymentEventError("Event has no payment reference")

    amount_total = payload.get("amountTotal")
    if isinstance(amount_total, bool) or not isinstance(amount_total, int) or amount_total < 0:
        raise InvalidPaymentEventError("amountTotal must be a non-negative integer")

    currency = str(payload.get("currency") or "").strip().upper()
    if not currency:
        raise InvalidPaymentEventError("Event has no currency")

    return CompletedCheckout(
        email=email,
        amount_total=amount_total,
        currency=currency,
        payment_reference=payment_reference,
        paid=payload.get("paid") is True,
        paid_at=_parse_paid_at(payload.get("paidAt")),
    )
