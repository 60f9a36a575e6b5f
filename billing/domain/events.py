"""
Billing domain events.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent, utcnow


class InvoiceIssued(DomainEvent):
    """Event raised when an invoice is recorded in the ledger."""

    def __init__(
        self,
        invoice_number: str,
        payment_reference: str,
        total: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize InvoiceIssued event.

        Args:
            invoice_number: Invoice number "N/YYYY"
            payment_reference: Payment the invoice belongs to
            total: Invoice total as a decimal string
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=invoice_number,
            event_type="InvoiceIssued",
        )
        self.invoice_number = invoice_number
        self.payment_reference = payment_reference
        self.total = total

    def payload(self) -> Dict[str, Any]:
        return {"payment_reference": self.payment_reference, "total": self.total}
