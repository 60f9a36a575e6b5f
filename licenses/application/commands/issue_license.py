"""
IssueLicenseCommand.

Command to mint a license for a confirmed payment.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.value_objects import LicenseSource


@dataclass
class IssueLicenseCommand:
    """Command to issue one license for one payment."""

    email: str
    source: LicenseSource
    payment_reference: str
    paid_at: datetime
    amount_total: Optional[int] = None  # Minor currency units
    currency: Optional[str] = None
