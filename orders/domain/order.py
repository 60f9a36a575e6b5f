"""
ManualOrder domain entity.

A manual order is a purchase paid out of band (Bizum or bank transfer)
that an operator confirms by hand:

    pending --claim--> paid_processing --complete--> license_sent
       ^                    |                    \\-> license_created_email_failed
       +------release-------+
"""

import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.domain.exceptions import OrderNotPendingError
from core.domain.value_objects import OrderStatus, PaymentMethod

LAST_ERROR_MAX_LENGTH = 500


@dataclass(frozen=True)
class ManualOrder:
    """
    ManualOrder domain entity.

    State changes return new instances; the repository persists them
    inside a row-locked transaction.
    """

    id: uuid.UUID
    method: PaymentMethod
    email: str
    amount: Decimal
    currency: str
    reference: str
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    paid_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    license_code: Optional[str] = None
    invoice_number: Optional[str] = None
    last_error: Optional[str] = None

    @classmethod
    def create(
        cls,
        method: PaymentMethod,
        email: str,
        amount: Decimal,
        currency: str,
        reference: str,
        now: datetime,
    ) -> "ManualOrder":
        """
        Create a new pending order.

        Args:
            method: Payment method chosen by the customer
            email: Purchaser email, already normalized
            amount: Amount to pay
            currency: ISO currency code
            reference: Reference the customer must quote with the payment
            now: Creation time

        Returns:
            ManualOrder entity instance
        """
        return cls(
            id=uuid.uuid4(),
            method=method,
            email=email,
            amount=amount,
            currency=currency,
            reference=reference,
            status=OrderStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    @property
    def is_resendable(self) -> bool:
        """Whether a purchase email can be sent again for this order."""
        return (
            self.status in (OrderStatus.LICENSE_SENT, OrderStatus.LICENSE_CREATED_EMAIL_FAILED)
            and bool(self.license_code)
            and bool(self.invoice_number)
        )

    def claim(self, now: datetime) -> "ManualOrder":
        """
        Move a pending order to paid_processing.

        Raises:
            OrderNotPendingError: If the order was already claimed or completed
        """
        if not self.is_pending:
            raise OrderNotPendingError()
        return replace(
            self,
            status=OrderStatus.PAID_PROCESSING,
            paid_at=self.paid_at or now,
            last_error=None,
            updated_at=now,
        )

    def release(self, error: str, now: datetime) -> "ManualOrder":
        """Put a failed order back to pending so it can be retried."""
        return replace(
            self,
            status=OrderStatus.PENDING,
            last_error=(error or "")[:LAST_ERROR_MAX_LENGTH] or None,
            updated_at=now,
        )

    def complete(
        self,
        license_code: str,
        invoice_number: str,
        now: datetime,
        email_error: Optional[str] = None,
    ) -> "ManualOrder":
        """
        Finish the order once license and invoice exist.

        Args:
            license_code: Issued license
            invoice_number: Recorded invoice
            now: Completion time
            email_error: Delivery failure, if the purchase email did not leave

        Returns:
            Order in license_sent, or license_created_email_failed
        """
        status = (
            OrderStatus.LICENSE_CREATED_EMAIL_FAILED if email_error else OrderStatus.LICENSE_SENT
        )
        return replace(
            self,
            status=status,
            license_code=license_code,
            invoice_number=invoice_number,
            last_error=email_error[:LAST_ERROR_MAX_LENGTH] if email_error else None,
            completed_at=now,
            updated_at=now,
        )

    def mark_email_sent(self, now: datetime) -> "ManualOrder":
        """Record a successful resend of the purchase email."""
        return replace(self, status=OrderStatus.LICENSE_SENT, last_error=None, updated_at=now)
