"""
Order domain events.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent, utcnow


class ManualOrderCreated(DomainEvent):
    """Event raised when a customer opens a manual order."""

    def __init__(
        self,
        order_id: str,
        reference: str,
        method: str,
        email: str,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=order_id,
            event_type="ManualOrderCreated",
        )
        self.order_id = order_id
        self.reference = reference
        self.method = method
        self.email = email

    def payload(self) -> Dict[str, Any]:
        return {"reference": self.reference, "method": self.method, "email": self.email}


class ManualOrderCompleted(DomainEvent):
    """Event raised when an operator-confirmed order reaches a terminal status."""

    def __init__(
        self,
        order_id: str,
        status: str,
        license_code: str,
        invoice_number: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize ManualOrderCompleted event.

        Args:
            order_id: Order id
            status: license_sent or license_created_email_failed
            license_code: Issued license
            invoice_number: Recorded invoice
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=order_id,
            event_type="ManualOrderCompleted",
        )
        self.order_id = order_id
        self.status = status
        self.license_code = license_code
        self.invoice_number = invoice_number

    def payload(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "license_code": self.license_code,
            "invoice_number": self.invoice_number,
        }


class PaymentEventProcessed(DomainEvent):
    """Event raised when a trusted payment event reaches a final status."""

    def __init__(
        self,
        payment_event_id: str,
        status: str,
        payment_reference: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=payment_event_id,
            event_type="PaymentEventProcessed",
        )
        self.payment_event_id = payment_event_id
        self.status = status
        self.payment_reference = payment_reference

    def payload(self) -> Dict[str, Any]:
        return {"status": self.status, "payment_reference": self.payment_reference}
