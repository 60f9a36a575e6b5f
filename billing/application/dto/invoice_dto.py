"""
Invoice DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


@dataclass
class InvoiceDTO:
    """DTO for one ledger entry."""

    invoice_number: str
    date: datetime
    email: str
    base: Decimal
    iva: Decimal
    ret: Decimal
    total: Decimal
    currency: str
    method: str
    order_id: Optional[str]
    license_code: Optional[str]


@dataclass
class InvoiceTotalsDTO:
    """Sums over a list of invoices."""

    count: int
    base: Decimal
    iva: Decimal
    ret: Decimal
    total: Decimal


@dataclass
class InvoiceListDTO:
    """DTO for an invoice listing with server-computed totals."""

    invoices: List[InvoiceDTO]
    totals: InvoiceTotalsDTO
