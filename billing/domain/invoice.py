"""
Invoice domain entities.

Invoices are append-only ledger entries numbered "N/YYYY" with a
gap-free sequence per calendar year.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from core.domain.value_objects import ValueObject

_NUMBER_PATTERN = re.compile(r"^(\d+)[/-](\d{4})$")


@dataclass(frozen=True)
class InvoiceNumber(ValueObject):
    """Invoice number value object."""

    sequence: int
    year: int

    def __post_init__(self):
        """Validate invoice number."""
        if self.sequence < 1:
            raise ValueError("Invoice sequence starts at 1")

    @classmethod
    def parse(cls, value: str) -> "InvoiceNumber":
        """
        Parse "N/YYYY" (or its slug form "N-YYYY").

        Args:
            value: Formatted invoice number

        Returns:
            InvoiceNumber instance
        """
        match = _NUMBER_PATTERN.match((value or "").strip())
        if not match:
            raise ValueError(f"Invalid invoice number: {value}")
        return cls(sequence=int(match.group(1)), year=int(match.group(2)))

    @property
    def slug(self) -> str:
        """Storage key, safe for URLs and file names."""
        return f"{self.sequence}-{self.year}"

    def __str__(self) -> str:
        """Return invoice number as printed on the invoice."""
        return f"{self.sequence}/{self.year}"


@dataclass(frozen=True)
class InvoiceDraft:
    """An invoice before it has been given a number and an issue date."""

    email: str
    base: Decimal
    iva: Decimal
    ret: Decimal
    total: Decimal
    iva_percent: Decimal
    retention_percent: Decimal
    currency: str
    method: str
    source: str
    payment_reference: str
    order_id: Optional[str] = None
    license_code: Optional[str] = None
    paid_at: Optional[datetime] = None


@dataclass(frozen=True)
class Invoice:
    """
    Invoice domain entity.

    Created once and never mutated.
    """

    number: InvoiceNumber
    issued_at: datetime
    email: str
    base: Decimal
    iva: Decimal
    ret: Decimal
    total: Decimal
    iva_percent: Decimal
    retention_percent: Decimal
    currency: str
    method: str
    source: str
    payment_reference: str
    order_id: Optional[str] = None
    license_code: Optional[str] = None
    paid_at: Optional[datetime] = None

    @classmethod
    def from_draft(
        cls, draft: InvoiceDraft, number: InvoiceNumber, issued_at: datetime
    ) -> "Invoice":
        """
        Number and date a draft.

        Args:
            draft: Unnumbered invoice
            number: Allocated invoice number
            issued_at: Issue time, whose calendar year the number belongs to

        Returns:
            Invoice entity
        """
        return cls(number=number, issued_at=issued_at, **draft.__dict__)

    @property
    def invoice_number(self) -> str:
        """Invoice number as printed."""
        return str(self.number)

    @property
    def slug(self) -> str:
        """Ledger key."""
        return self.number.slug
