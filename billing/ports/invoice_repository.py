"""
Invoice repository port (interface).

The ledger owns invoice numbering: a number is only ever allocated
in the same transaction that records the invoice using it.
"""
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple

from billing.domain.invoice import Invoice, InvoiceDraft, InvoiceNumber


class InvoiceRepository(ABC):
    """Abstract repository for the invoice ledger."""

    @abstractmethod
    async def next_invoice_number(self, now: datetime) -> InvoiceNumber:
        """
        Consume the next number of the calendar year of `now`.

        Numbers are never reused or voided, so this must only be
        called when the number is going to be printed.

        Args:
            now: Reference time

        Returns:
            Allocated invoice number
        """
        pass

    @abstractmethod
    async def issue(
        self, draft: InvoiceDraft, now: Optional[datetime] = None
    ) -> Tuple[Invoice, bool]:
        """
        Number and record an invoice, once per payment.

        The invoice is dated at issue time and numbered in the sequence of
        that calendar year. The payment time is only recorded.

        Args:
            draft: Unnumbered invoice
            now: Issue time, defaults to the current time

        Returns:
            Tuple of (invoice, created). created is False when the payment
            already had an invoice, which is returned unchanged.
        """
        pass

    @abstractmethod
    async def find_by_payment_reference(
        self, source: str, payment_reference: str
    ) -> Optional[Invoice]:
        """
        Find the invoice recorded for a payment.

        Args:
            source: Payment provenance
            payment_reference: Order id or checkout session id

        Returns:
            Invoice entity or None
        """
        pass

    @abstractmethod
    async def find_by_number(self, number: InvoiceNumber) -> Optional[Invoice]:
        """Find an invoice by number."""
        pass

    @abstractmethod
    async def list_between(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> List[Invoice]:
        """
        List invoices issued in [start, end).

        Args:
            start: Inclusive lower bound, or None
            end: Exclusive upper bound, or None

        Returns:
            Invoices ordered by issue time
        """
        pass
