"""
Activation domain events.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from core.domain.events import DomainEvent, utcnow


class LicenseCheckAttempted(DomainEvent):
    """Event raised for every runtime check of a license, successful or not."""

    def __init__(
        self,
        code: str,
        device_id: Optional[str],
        operation: str,
        result: str,
        occurred_at: Optional[datetime] = None,
    ):
        """
        Initialize LicenseCheckAttempted event.

        Args:
            code: License code
            device_id: Device that asked
            operation: activate, validate, info or change_device
            result: Outcome of the check
            occurred_at: When the event occurred
        """
        super().__init__(
            event_id=uuid.uuid4(),
            occurred_at=occurred_at or utcnow(),
            aggregate_id=code,
            event_type="LicenseCheckAttempted",
        )
        self.code = code
        self.device_id = device_id
        self.operation = operation
        self.result = result

    def payload(self) -> Dict[str, Any]:
        return {"device_id": self.device_id, "operation": self.operation, "result": self.result}
