"""
Value objects for the domain.

Value objects are immutable objects that are defined by their attributes
rather than their identity. They have no identity and are compared by value.
"""
from abc import ABC
from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class ValueObject(ABC):
    """
    Base class for value objects.

    Value objects are immutable and compared by value.
    """

    def __eq__(self, other):
        """Compare value objects by their attributes."""
        if not isinstance(other, self.__class__):
            return False
        return self.__dict__ == other.__dict__

    def __hash__(self):
        """Make value objects hashable."""
        return hash(tuple(sorted(self.__dict__.items())))


@dataclass(frozen=True)
class Email(ValueObject):
    """Email value object, normalized to lower case."""

    value: str

    def __post_init__(self):
        """Normalize and validate email format."""
        normalized = (self.value or "").strip().lower()
        if not normalized or "@" not in normalized:
            raise ValueError(f"Invalid email address: {self.value}")
        object.__setattr__(self, "value", normalized)

    def __str__(self) -> str:
        """Return email as string."""
        return self.value


class LicenseStatus(Enum):
    """License status enumeration."""

    ACTIVE = "active"
    USED = "used"
    EXPIRED = "expired"
    REVOKED = "revoked"
    REFUNDED = "refunded"

    @property
    def is_blocked(self) -> bool:
        """Revoked and refunded licenses can never be used again."""
        return self in (LicenseStatus.REVOKED, LicenseStatus.REFUNDED)

    @property
    def is_entitled(self) -> bool:
        """Whether the status still grants the customer an entitlement."""
        return self in (LicenseStatus.ACTIVE, LicenseStatus.USED)


class LicenseSource(Enum):
    """Where the payment behind a license came from."""

    MANUAL = "manual"
    STRIPE = "stripe"


class PaymentMethod(Enum):
    """Out-of-band payment methods for manual orders."""

    BIZUM = "bizum"
    TRANSFER = "transfer"

    @property
    def reference_tag(self) -> str:
        """Short tag embedded in order references."""
        return "BIZ" if self == PaymentMethod.BIZUM else "TRF"


class OrderStatus(Enum):
    """Manual order status enumeration."""

    PENDING = "pending"
    PAID_PROCESSING = "paid_processing"
    LICENSE_SENT = "license_sent"
    LICENSE_CREATED_EMAIL_FAILED = "license_created_email_failed"


class PaymentEventStatus(Enum):
    """Processing status of a trusted payment event."""

    RECEIVED = "received"
    PROCESSING = "processing"
    PROCESSED = "processed"
    IGNORED = "ignored"
    INVALID = "invalid"
    ERROR = "error"
    LICENSE_CREATED_EMAIL_FAILED = "license_created_email_failed"

    @property
    def is_final(self) -> bool:
        """Final events are never processed again."""
        return self in (
            PaymentEventStatus.PROCESSED,
            PaymentEventStatus.IGNORED,
            PaymentEventStatus.INVALID,
            PaymentEventStatus.LICENSE_CREATED_EMAIL_FAILED,
        )


class CheckOperation(Enum):
    """Runtime operations recorded in the activation attempt log."""

    ACTIVATE = "activate"
    VALIDATE = "validate"
    INFO = "info"
    CHANGE_DEVICE = "change_device"


class CheckResult(Enum):
    """Outcome of a runtime license check."""

    OK_FIRST_USE = "ok_first_use"
    OK_SAME_DEVICE = "ok_same_device"
    OK_UNBOUND = "ok_unbound"
    DEVICE_CHANGED = "device_changed"
    NOT_FOUND = "not_found"
    BLOCKED = "blocked"
    EXPIRED = "expired"
    USED_BY_OTHER = "used_by_other"
    NOT_ACTIVE = "not_active"
    CHANGE_ALREADY_USED = "change_already_used"
