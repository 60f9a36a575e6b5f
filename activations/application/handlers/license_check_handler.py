"""
License check handlers.

Activate, validate and info share one flow: parse the input, apply a
policy transition under the license row lock, record the attempt and
only then raise the domain error carried by the transition.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Optional

from activations.application.commands.activate_license import (
    ActivateLicenseCommand,
    ValidateLicenseCommand,
)
from activations.application.dto.activation_dto import LicenseCheckDTO
from activations.application.queries.get_license_info import GetLicenseInfoQuery
from activations.domain.events import LicenseCheckAttempted
from activations.domain.services import (
    CheckOutcome,
    LicenseActivationPolicy,
    check_result_for,
    parse_device_id,
    parse_license_code,
)
from core.domain.events import EventBus, utcnow
from core.domain.exceptions import LicenseExpiredError
from core.domain.value_objects import CheckOperation
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import license_checks_total
from licenses.domain.events import LicenseActivated, LicenseExpired
from licenses.domain.transitions import LicenseTransition, TransitionFn
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class LicenseCheckHandler(ABC):
    """Base handler for runtime license checks."""

    operation: CheckOperation = CheckOperation.ACTIVATE

    def __init__(self, license_repository: LicenseRepository, event_bus: Optional[EventBus] = None):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.event_bus = event_bus or default_event_bus

    @abstractmethod
    def build_transition(self, device_id: str, now: datetime) -> TransitionFn:
        """Policy transition applied to the license for this operation."""
        pass

    async def check(self, raw_code, raw_device_id) -> LicenseCheckDTO:
        """
        Run one check.

        Args:
            raw_code: License code as sent by the client
            raw_device_id: Device id as sent by the client

        Returns:
            LicenseCheckDTO

        Raises:
            InvalidInputError: If the code or device id is malformed
            LicenseException: If the check fails
        """
        code = parse_license_code(raw_code)
        device_id = parse_device_id(raw_device_id)
        now = utcnow()

        outcome = await self.license_repository.apply(code, self.build_transition(device_id, now))
        await self._record(code, device_id, outcome)
        await self._publish_side_effects(code, device_id, outcome)

        outcome.unwrap()
        result: CheckOutcome = outcome.result
        license = outcome.license
        return LicenseCheckDTO(
            code=license.code,
            status=license.status.value,
            result=result.result.value,
            expires_at=license.expires_at,
            first_activation=result.first_activation,
            activated_at=license.activated_at,
            device_change_available=license.can_change_device(now),
        )

    async def _record(self, code: str, device_id: str, outcome: LicenseTransition) -> None:
        result = outcome.result.result if outcome.ok else check_result_for(outcome.error)
        if result is None:
            return
        license_checks_total.labels(operation=self.operation.value, result=result.value).inc()
        logger.info(
            "License check",
            extra={
                "license_code": code,
                "device_id": device_id,
                "operation": self.operation.value,
                "result": result.value,
            },
        )
        await self.event_bus.publish(
            LicenseCheckAttempted(
                code=code,
                device_id=device_id,
                operation=self.operation.value,
                result=result.value,
            )
        )

    async def _publish_side_effects(
        self, code: str, device_id: str, outcome: LicenseTransition
    ) -> None:
        if not outcome.changed:
            return
        if isinstance(outcome.error, LicenseExpiredError):
            await self.event_bus.publish(
                LicenseExpired(code=code, expires_at=outcome.license.expires_at)
            )
        elif outcome.ok and outcome.result.first_activation:
            await self.event_bus.publish(LicenseActivated(code=code, device_id=device_id))


class ActivateLicenseHandler(LicenseCheckHandler):
    """Handler for ActivateLicenseCommand."""

    operation = CheckOperation.ACTIVATE

    def build_transition(self, device_id: str, now: datetime) -> TransitionFn:
        return LicenseActivationPolicy.activate(device_id, now)

    async def handle(self, command: ActivateLicenseCommand) -> LicenseCheckDTO:
        """
        Handle activate license command.

        The first call binds the device; later calls from the same device
        succeed with first_activation=False.
        """
        return await self.check(command.code, command.device_id)


class ValidateLicenseHandler(LicenseCheckHandler):
    """Handler for ValidateLicenseCommand."""

    operation = CheckOperation.VALIDATE

    def build_transition(self, device_id: str, now: datetime) -> TransitionFn:
        return LicenseActivationPolicy.validate(device_id, now)

    async def handle(self, command: ValidateLicenseCommand) -> LicenseCheckDTO:
        """Handle validate license command."""
        return await self.check(command.code, command.device_id)


class GetLicenseInfoHandler(LicenseCheckHandler):
    """Handler for GetLicenseInfoQuery. Never binds a device."""

    operation = CheckOperation.INFO

    def build_transition(self, device_id: str, now: datetime) -> Callable:
        return LicenseActivationPolicy.inspect(device_id, now)

    async def handle(self, query: GetLicenseInfoQuery) -> LicenseCheckDTO:
        """Handle license info query."""
        return await self.check(query.code, query.device_id)
