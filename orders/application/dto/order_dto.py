"""
Order DTOs for API responses.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional


@dataclass
class ManualOrderDTO:
    """DTO for one manual order."""

    id: uuid.UUID
    method: str
    email: str
    amount: Decimal
    currency: str
    reference: str
    status: str
    created_at: datetime
    updated_at: datetime
    license_code: Optional[str] = None
    invoice_number: Optional[str] = None
    last_error: Optional[str] = None


@dataclass
class ManualOrderCreatedDTO:
    """DTO returned to the customer when a manual order is opened."""

    order_id: uuid.UUID
    reference: str
    amount: Decimal
    currency: str
    instructions: Dict[str, Any] = field(default_factory=dict)


@dataclass
class OrderCompletionDTO:
    """DTO returned to the operator after completing an order."""

    order_id: uuid.UUID
    status: str
    license_code: str
    invoice_number: str
    email_sent: bool
    warning: Optional[str] = None


@dataclass
class PaymentEventResultDTO:
    """DTO returned to the payment provider."""

    event_id: str
    status: str
    duplicate: bool = False
    license_code: Optional[str] = None
    invoice_number: Optional[str] = None
