"""
RecordInvoiceCommand.

Command to record the invoice of a paid license.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class RecordInvoiceCommand:
    """Command to number and record one invoice for one payment."""

    email: str
    method: str  # stripe | bizum | transfer
    source: str  # manual | stripe
    payment_reference: str
    paid_at: Optional[datetime] = None  # Payment metadata; invoices are dated when issued
    order_id: Optional[str] = None
    license_code: Optional[str] = None
    amount_paid: Optional[int] = None  # Minor units actually charged, when known
