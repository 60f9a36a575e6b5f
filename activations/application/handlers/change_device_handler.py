"""
ChangeDeviceHandler.

Handles the support-side device change.
"""

import logging
from typing import Optional

from activations.application.commands.change_device import ChangeDeviceCommand
from activations.application.dto.activation_dto import DeviceChangeDTO
from activations.domain.events import LicenseCheckAttempted
from activations.domain.services import (
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
from licenses.domain.events import LicenseDeviceChanged, LicenseExpired
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class ChangeDeviceHandler:
    """Handler for ChangeDeviceCommand."""

    def __init__(self, license_repository: LicenseRepository, event_bus: Optional[EventBus] = None):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.event_bus = event_bus or default_event_bus

    async def handle(self, command: ChangeDeviceCommand) -> DeviceChangeDTO:
        """
        Handle change device command.

        Args:
            command: ChangeDeviceCommand

        Returns:
            DeviceChangeDTO

        Raises:
            LicenseNotFoundError: If the code does not exist
            LicenseNotActiveError: If the license is not entitled
            LicenseExpiredError: If the license has expired
            DeviceChangeAlreadyUsedError: If the yearly change was already consumed
        """
        code = parse_license_code(command.code)
        new_device_id = parse_device_id(command.new_device_id)
        now = utcnow()

        outcome = await self.license_repository.apply(
            code, LicenseActivationPolicy.change_device(new_device_id, now, command.reason)
        )

        result = outcome.result.result if outcome.ok else check_result_for(outcome.error)
        if result is not None:
            license_checks_total.labels(
                operation=CheckOperation.CHANGE_DEVICE.value, result=result.value
            ).inc()
            await self.event_bus.publish(
                LicenseCheckAttempted(
                    code=code,
                    device_id=new_device_id,
                    operation=CheckOperation.CHANGE_DEVICE.value,
                    result=result.value,
                )
            )
        if outcome.changed and isinstance(outcome.error, LicenseExpiredError):
            await self.event_bus.publish(
                LicenseExpired(code=code, expires_at=outcome.license.expires_at)
            )

        outcome.unwrap()
        license = outcome.license
        logger.info(
            "License device changed",
            extra={
                "license_code": code,
                "previous_device_id": outcome.result.previous_device_id,
                "device_id": new_device_id,
            },
        )
        await self.event_bus.publish(
            LicenseDeviceChanged(
                code=code,
                previous_device_id=outcome.result.previous_device_id,
                new_device_id=new_device_id,
                reason=license.device_change_reason,
            )
        )
        return DeviceChangeDTO(
            code=license.code,
            device_id=license.device_id,
            previous_device_id=outcome.result.previous_device_id,
            device_changed_at=license.device_changed_at,
            expires_at=license.expires_at,
        )
