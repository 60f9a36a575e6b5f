"""
Activation domain services.

LicenseActivationPolicy holds the per-license state machine used by the
runtime operations. Each method returns a pure transition function that
the license repository applies under a row lock:

    active --activate--> used --change_device--> used
       \\                  /
        +--> expired <---+      (revoked / refunded are set by staff)
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from core.domain.exceptions import (
    DeviceChangeAlreadyUsedError,
    DeviceMismatchError,
    DomainException,
    InvalidInputError,
    InvalidLicenseCodeError,
    LicenseBlockedError,
    LicenseExpiredError,
    LicenseNotActiveError,
    LicenseNotFoundError,
    MissingDeviceError,
    RecoveryAlreadyUsedError,
)
from core.domain.value_objects import CheckResult, LicenseStatus
from licenses.domain.license import License
from licenses.domain.license_code import is_valid_license_code, normalize_license_code
from licenses.domain.transitions import LicenseTransition, TransitionFn

DEVICE_ID_MAX_LENGTH = 255


@dataclass(frozen=True)
class CheckOutcome:
    """Successful outcome of a runtime check."""

    result: CheckResult
    first_activation: bool = False
    previous_device_id: Optional[str] = None


_ERROR_RESULTS = {
    LicenseNotFoundError: CheckResult.NOT_FOUND,
    LicenseBlockedError: CheckResult.BLOCKED,
    LicenseExpiredError: CheckResult.EXPIRED,
    DeviceMismatchError: CheckResult.USED_BY_OTHER,
    LicenseNotActiveError: CheckResult.NOT_ACTIVE,
    DeviceChangeAlreadyUsedError: CheckResult.CHANGE_ALREADY_USED,
}


def check_result_for(error: DomainException) -> Optional[CheckResult]:
    """
    Map a check failure to the result recorded in the attempt log.

    Args:
        error: Domain error returned by a transition

    Returns:
        CheckResult, or None for errors that are not check outcomes
    """
    for error_type, result in _ERROR_RESULTS.items():
        if isinstance(error, error_type):
            return result
    return None


def parse_license_code(raw) -> str:
    """
    Normalize and validate a license code from user input.

    Args:
        raw: Code as typed

    Returns:
        Canonical code

    Raises:
        InvalidInputError: If the code is missing
        InvalidLicenseCodeError: If the code is malformed
    """
    code = normalize_license_code(raw)
    if not code:
        raise InvalidInputError("License code is required", code="MISSING_CODE")
    if not is_valid_license_code(code):
        raise InvalidLicenseCodeError()
    return code


def parse_device_id(raw) -> str:
    """
    Validate a device identifier from user input.

    Args:
        raw: Device id as sent by the client

    Returns:
        Trimmed device id

    Raises:
        MissingDeviceError: If the device id is blank
        InvalidInputError: If the device id is too long
    """
    device_id = str(raw or "").strip()
    if not device_id:
        raise MissingDeviceError()
    if len(device_id) > DEVICE_ID_MAX_LENGTH:
        raise InvalidInputError("Device id is too long", code="INVALID_DEVICE")
    return device_id


class LicenseActivationPolicy:
    """Pure state transitions for runtime license operations."""

    @staticmethod
    def _usable(current: Optional[License], now: datetime) -> Optional[LicenseTransition]:
        """
        Shared guard: existence, blocking and expiry.

        Returns:
            A failed transition, or None when the license may be used
        """
        if current is None:
            return LicenseTransition.fail(LicenseNotFoundError())
        if current.status.is_blocked:
            return LicenseTransition.fail(LicenseBlockedError(), current)
        if current.is_expired(now):
            if current.status == LicenseStatus.EXPIRED:
                return LicenseTransition.fail(LicenseExpiredError(), current)
            return LicenseTransition.fail(
                LicenseExpiredError(), current.mark_expired(now), changed=True
            )
        return None

    @classmethod
    def activate(cls, device_id: str, now: datetime, validation: bool = False) -> TransitionFn:
        """
        Bind on first use, accept the bound device, reject any other.

        Args:
            device_id: Device asking for activation
            now: Current time
            validation: Stamp last_validated_at on success (online re-checks)

        Returns:
            Transition function
        """

        def transition(current: Optional[License]) -> LicenseTransition:
            failure = cls._usable(current, now)
            if failure is not None:
                return failure

            if not current.is_bound:
                bound = current.bind_device(device_id, now)
                if validation:
                    bound = bound.record_validation(now)
                return LicenseTransition.write(
                    bound, CheckOutcome(CheckResult.OK_FIRST_USE, first_activation=True)
                )

            if current.is_bound_to(device_id):
                outcome = CheckOutcome(CheckResult.OK_SAME_DEVICE)
                if validation:
                    return LicenseTransition.write(current.record_validation(now), outcome)
                return LicenseTransition.keep(current, outcome)

            return LicenseTransition.fail(DeviceMismatchError(), current)

        return transition

    @classmethod
    def validate(cls, device_id: str, now: datetime) -> TransitionFn:
        """Online re-check: same rules as activation, expiry is never moved."""
        return cls.activate(device_id, now, validation=True)

    @classmethod
    def inspect(cls, device_id: str, now: datetime) -> TransitionFn:
        """
        Read-only check used by the info endpoint.

        Args:
            device_id: Device asking
            now: Current time

        Returns:
            Transition function that never binds
        """

        def transition(current: Optional[License]) -> LicenseTransition:
            failure = cls._usable(current, now)
            if failure is not None:
                return failure
            if not current.is_bound:
                return LicenseTransition.keep(current, CheckOutcome(CheckResult.OK_UNBOUND))
            if current.is_bound_to(device_id):
                return LicenseTransition.keep(current, CheckOutcome(CheckResult.OK_SAME_DEVICE))
            return LicenseTransition.fail(DeviceMismatchError(), current)

        return transition

    @classmethod
    def change_device(
        cls, new_device_id: str, now: datetime, reason: Optional[str] = None
    ) -> TransitionFn:
        """
        Rebind to a new device, at most once per rolling 365 days.

        Args:
            new_device_id: Device to bind
            now: Current time
            reason: Support note

        Returns:
            Transition function
        """

        def transition(current: Optional[License]) -> LicenseTransition:
            if current is None:
                return LicenseTransition.fail(LicenseNotFoundError())
            if current.status == LicenseStatus.EXPIRED:
                return LicenseTransition.fail(LicenseExpiredError(), current)
            if not current.status.is_entitled:
                return LicenseTransition.fail(LicenseNotActiveError(), current)
            if current.is_expired(now):
                return LicenseTransition.fail(
                    LicenseExpiredError("License has expired; the device cannot be changed"),
                    current.mark_expired(now),
                    changed=True,
                )
            if not current.can_change_device(now):
                return LicenseTransition.fail(DeviceChangeAlreadyUsedError(), current)
            if current.is_bound_to(new_device_id):
                return LicenseTransition.fail(
                    InvalidInputError("License is already bound to this device", code="SAME_DEVICE"),
                    current,
                )
            changed = current.change_device(new_device_id, now, reason)
            return LicenseTransition.write(
                changed,
                CheckOutcome(CheckResult.DEVICE_CHANGED, previous_device_id=current.device_id),
            )

        return transition

    @staticmethod
    def consume_recovery(now: datetime) -> TransitionFn:
        """
        Flip the recovery flag, re-checking it under the lock.

        Args:
            now: Current time

        Returns:
            Transition function
        """

        def transition(current: Optional[License]) -> LicenseTransition:
            if current is None:
                return LicenseTransition.fail(LicenseNotFoundError())
            if not current.status.is_entitled or current.is_expired(now):
                return LicenseTransition.fail(LicenseNotActiveError(), current)
            if current.recovery_used:
                return LicenseTransition.fail(RecoveryAlreadyUsedError(), current)
            return LicenseTransition.write(current.consume_recovery(now))

        return transition

    @staticmethod
    def release_recovery(now: datetime) -> TransitionFn:
        """
        Undo a recovery whose email never left.

        Args:
            now: Current time

        Returns:
            Transition function
        """

        def transition(current: Optional[License]) -> LicenseTransition:
            if current is None or not current.recovery_used:
                return LicenseTransition(license=current)
            return LicenseTransition.write(current.release_recovery(now))

        return transition
