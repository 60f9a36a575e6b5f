"""
ActivationAttempt domain entity.

Every runtime check of a license (activation, validation, info lookup,
device change) leaves one attempt record with its outcome.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.events import utcnow
from core.domain.value_objects import CheckOperation, CheckResult


@dataclass(frozen=True)
class ActivationAttempt:
    """
    ActivationAttempt domain entity.

    This is an immutable value object with no behaviour beyond creation.
    """

    id: uuid.UUID
    code: str
    device_id: Optional[str]
    operation: CheckOperation
    result: CheckResult
    created_at: datetime

    @classmethod
    def create(
        cls,
        code: str,
        device_id: Optional[str],
        operation: CheckOperation,
        result: CheckResult,
        created_at: Optional[datetime] = None,
    ) -> "ActivationAttempt":
        """
        Create a new ActivationAttempt entity.

        Args:
            code: License code that was checked
            device_id: Device that asked
            operation: Kind of check
            result: Outcome of the check
            created_at: When it happened

        Returns:
            ActivationAttempt entity instance
        """
        return cls(
            id=uuid.uuid4(),
            code=code,
            device_id=device_id,
            operation=operation,
            result=result,
            created_at=created_at or utcnow(),
        )

    @property
    def succeeded(self) -> bool:
        """Whether the check let the device through."""
        return self.result in (
            CheckResult.OK_FIRST_USE,
            CheckResult.OK_SAME_DEVICE,
            CheckResult.OK_UNBOUND,
            CheckResult.DEVICE_CHANGED,
        )
