"""
IssueLicenseHandler.

Handles the issue license command. Issuing twice for the same payment
returns the license minted the first time.
"""

import logging
from typing import Callable, Optional

from core.domain.events import EventBus
from core.domain.exceptions import LicenseAlreadyIssuedError, LicenseNotFoundError
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import licenses_issued_total
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.dto.license_dto import IssuedLicenseDTO
from licenses.domain.events import LicenseIssued
from licenses.domain.license import License
from licenses.domain.license_code import generate_license_code
from licenses.domain.services import LicenseIssuer, LicenseRequest
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)


class IssueLicenseHandler:
    """Handler for IssueLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        event_bus: Optional[EventBus] = None,
        code_generator: Callable[[], str] = generate_license_code,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.event_bus = event_bus or default_event_bus
        self.issuer = LicenseIssuer(license_repository, code_generator=code_generator)

    async def handle(self, command: IssueLicenseCommand) -> IssuedLicenseDTO:
        """
        Handle issue license command.

        Args:
            command: IssueLicenseCommand

        Returns:
            IssuedLicenseDTO, with created=False if the payment already had a license

        Raises:
            LicenseCodeExhaustedError: If no unique code could be allocated
        """
        existing = await self.license_repository.find_by_payment_reference(
            command.source, command.payment_reference
        )
        if existing:
            logger.info(
                "License %s already issued for payment %s",
                existing.code,
                command.payment_reference,
            )
            return self._to_dto(existing, created=False)

        request = LicenseRequest(
            email=command.email,
            source=command.source,
            payment_reference=command.payment_reference,
            paid_at=command.paid_at,
            amount_total=command.amount_total,
            currency=command.currency,
        )
        try:
            license = await self.issuer.issue(request)
        except LicenseAlreadyIssuedError as exc:
            existing = await self.license_repository.find_by_code(exc.existing_code)
            if existing is None:
                raise LicenseNotFoundError(f"License {exc.existing_code} vanished") from exc
            return self._to_dto(existing, created=False)

        licenses_issued_total.labels(source=license.source.value).inc()
        logger.info(
            "License issued",
            extra={
                "license_code": license.code,
                "source": license.source.value,
                "payment_reference": license.payment_reference,
            },
        )

        await self.event_bus.publish(
            LicenseIssued(
                code=license.code,
                email=license.email,
                source=license.source.value,
                payment_reference=license.payment_reference,
            )
        )
        return self._to_dto(license, created=True)

    @staticmethod
    def _to_dto(license: License, created: bool) -> IssuedLicenseDTO:
        return IssuedLicenseDTO(
            code=license.code,
            email=license.email,
            expires_at=license.expires_at,
            created=created,
        )
