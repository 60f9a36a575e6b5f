"""
License DTOs for API responses.
"""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class IssuedLicenseDTO:
    """DTO for a license issued (or found) for a payment."""

    code: str
    email: str
    expires_at: datetime
    created: bool  # False when the payment already had a license
