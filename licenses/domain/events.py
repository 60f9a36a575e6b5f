"""
License domain events.

Domain events represent something that happened in the license domain.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent, utcnow


class LicenseIssued(DomainEvent):
    """Event raised when a license is issued for a payment."""

    def __init__(
        self,
        code: str,
        email: str,
        source: str,
        payment_reference: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseIssued event.

        Args:
            code: License code
            email: Purchaser email
            source: Payment provenance
            payment_reference: Order id or checkout session id
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=code,
            event_type="LicenseIssued",
        )
        self.code = code
        self.email = email
        self.source = source
        self.payment_reference = payment_reference

    def payload(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "source": self.source,
            "payment_reference": self.payment_reference,
        }


class LicenseActivated(DomainEvent):
    """Event raised when a device is bound for the first time."""

    def __init__(self, code: str, device_id: str, occurred_at: Optional[datetime] = None):
        """
        Initialize LicenseActivated event.

        Args:
            code: License code
            device_id: Bound device
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=code,
            event_type="LicenseActivated",
        )
        self.code = code
        self.device_id = device_id

    def payload(self) -> Dict[str, Any]:
        return {"device_id": self.device_id}


class LicenseDeviceChanged(DomainEvent):
    """Event raised when support rebinds a license to another device."""

    def __init__(
        self,
        code: str,
        previous_device_id: Optional[str],
        new_device_id: str,
        reason: Optional[str] = None,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseDeviceChanged event.

        Args:
            code: License code
            previous_device_id: Device bound before the change
            new_device_id: Device bound after the change
            reason: Support note
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=code,
            event_type="LicenseDeviceChanged",
        )
        self.code = code
        self.previous_device_id = previous_device_id
        self.new_device_id = new_device_id
        self.reason = reason

    def payload(self) -> Dict[str, Any]:
        return {
            "previous_device_id": self.previous_device_id,
            "new_device_id": self.new_device_id,
            "reason": self.reason,
        }


class LicenseRecovered(DomainEvent):
    """Event raised when a license code was re-sent to its owner."""

    def __init__(self, code: str, email: str, occurred_at: Optional[datetime] = None):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=code,
            event_type="LicenseRecovered",
        )
        self.code = code
        self.email = email

    def payload(self) -> Dict[str, Any]:
        return {"email": self.email}


class LicenseExpired(DomainEvent):
    """Event raised when a license is marked expired."""

    def __init__(self, code: str, expires_at: datetime, occurred_at: Optional[datetime] = None):
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=code,
            event_type="LicenseExpired",
        )
        self.code = code
        self.expires_at = expires_at

    def payload(self) -> Dict[str, Any]:
        return {"expires_at": self.expires_at.isoformat()}
