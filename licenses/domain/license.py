"""
License domain entity.

This is the core domain entity representing a license.
It contains business logic and is independent of infrastructure.
Every state change returns a new instance; persistence decides
whether and when the new state is written.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Optional

from core.domain.value_objects import LicenseSource, LicenseStatus

DEVICE_CHANGE_WINDOW = timedelta(days=365)
DEVICE_CHANGE_REASON_MAX_LENGTH = 200


def add_one_year(moment: datetime) -> datetime:
    """
    Add one calendar year to a datetime.

    February 29th maps to February 28th of the following year.

    Args:
        moment: Starting point

    Returns:
        Same wall-clock time one year later
    """
    try:
        return moment.replace(year=moment.year + 1)
    except ValueError:
        return moment.replace(year=moment.year + 1, day=28)


@dataclass(frozen=True)
class License:
    """
    License domain entity.

    A license entitles one purchaser to use the product on one device
    at a time until it expires. This is an immutable value object with
    business logic.
    """

    code: str
    email: str
    status: LicenseStatus
    source: LicenseSource
    payment_reference: str
    created_at: datetime
    paid_at: datetime
    expires_at: datetime
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    device_id: Optional[str] = None
    activated_at: Optional[datetime] = None
    device_change_used: bool = False
    device_changed_at: Optional[datetime] = None
    previous_device_id: Optional[str] = None
    device_change_reason: Optional[str] = None
    recovery_used: bool = False
    recovery_used_at: Optional[datetime] = None
    last_validated_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        """Validate license entity."""
        if not self.code:
            raise ValueError("License code is required")
        if not self.email:
            raise ValueError("License email is required")
        if not self.payment_reference:
            raise ValueError("Payment reference is required")

    @classmethod
    def create(
        cls,
        code: str,
        email: str,
        source: LicenseSource,
        payment_reference: str,
        paid_at: datetime,
        now: datetime,
        amount_total: Optional[int] = None,
        currency: Optional[str] = None,
    ) -> "License":
        """
        Create a freshly issued, unbound License.

        Args:
            code: Unique license code
            email: Purchaser email
            source: Payment provenance
            payment_reference: Order id or checkout session id
            paid_at: When the payment was made
            now: Issuance time
            amount_total: Amount paid in minor currency units
            currency: ISO currency code

        Returns:
            License entity instance
        """
        return cls(
            code=code,
            email=email.strip().lower(),
            status=LicenseStatus.ACTIVE,
            source=source,
            payment_reference=payment_reference,
            created_at=now,
            paid_at=paid_at,
            expires_at=add_one_year(paid_at),
            amount_total=amount_total,
            currency=currency.lower() if currency else None,
            updated_at=now,
        )

    @property
    def is_bound(self) -> bool:
        """Whether a device is currently bound."""
        return bool(self.device_id)

    def is_bound_to(self, device_id: str) -> bool:
        """
        Check whether the given device is the bound one.

        Args:
            device_id: Device identifier

        Returns:
            True if this exact device is bound
        """
        return self.is_bound and self.device_id == device_id

    def is_expired(self, now: datetime) -> bool:
        """
        Check whether the license is past its expiry.

        Args:
            now: Current time

        Returns:
            True once expires_at has been reached
        """
        return self.status == LicenseStatus.EXPIRED or self.expires_at <= now

    def can_change_device(self, now: datetime) -> bool:
        """
        Check whether the yearly device change is available.

        A change flag without a timestamp predates the rolling window
        and keeps blocking.

        Args:
            now: Current time

        Returns:
            True if no change was made in the last 365 days
        """
        if not self.device_change_used:
            return True
        if self.device_changed_at is None:
            return False
        return now - self.device_changed_at >= DEVICE_CHANGE_WINDOW

    def mark_expired(self, now: datetime) -> "License":
        """
        Create a new License instance with expired status.

        Returns:
            New License instance with expired status
        """
        return replace(self, status=LicenseStatus.EXPIRED, updated_at=now)

    def bind_device(self, device_id: str, now: datetime) -> "License":
        """
        Bind the first device.

        Args:
            device_id: Device identifier
            now: Activation time

        Returns:
            New License instance bound to the device
        """
        if self.is_bound:
            raise ValueError("License is already bound to a device")
        return replace(
            self,
            device_id=device_id,
            activated_at=now,
            status=LicenseStatus.USED,
            updated_at=now,
        )

    def change_device(self, device_id: str, now: datetime, reason: Optional[str] = None) -> "License":
        """
        Rebind the license to another device, consuming the yearly change.

        Args:
            device_id: New device identifier
            now: Change time
            reason: Optional support note

        Returns:
            New License instance bound to the new device
        """
        if reason:
            reason = reason.strip()[:DEVICE_CHANGE_REASON_MAX_LENGTH] or None
        return replace(
            self,
            device_id=device_id,
            activated_at=self.activated_at or now,
            status=LicenseStatus.USED,
            device_change_used=True,
            device_changed_at=now,
            previous_device_id=self.device_id,
            device_change_reason=reason,
            updated_at=now,
        )

    def record_validation(self, now: datetime) -> "License":
        """
        Stamp a successful online validation.

        Returns:
            New License instance with last_validated_at set
        """
        return replace(self, last_validated_at=now, updated_at=now)

    def consume_recovery(self, now: datetime) -> "License":
        """
        Flip the one-time recovery flag.

        Returns:
            New License instance with recovery used
        """
        if self.recovery_used:
            raise ValueError("Recovery already used")
        return replace(self, recovery_used=True, recovery_used_at=now, updated_at=now)

    def release_recovery(self, now: datetime) -> "License":
        """
        Give the recovery back after its email could not be delivered.

        Returns:
            New License instance with recovery available again
        """
        return replace(self, recovery_used=False, recovery_used_at=None, updated_at=now)
