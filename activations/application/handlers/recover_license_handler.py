"""
RecoverLicenseHandler.

Emails a lost license code to its owner, at most once per license.
"""

import logging
from typing import List, Optional

from activations.application.commands.recover_license import RecoverLicenseCommand
from activations.application.dto.activation_dto import RecoveryDTO
from activations.domain.services import LicenseActivationPolicy
from core.domain.events import EventBus, utcnow
from core.domain.exceptions import InvalidEmailError, NotificationError
from core.domain.value_objects import Email
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import license_recoveries_total
from licenses.application.services.license_mailer import LicenseMailer
from licenses.domain.events import LicenseRecovered
from licenses.domain.license import License
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

RECOVERY_MESSAGE = (
    "If an active license exists for this email, you'll receive an email with the code"
)
RECOVERY_CANDIDATE_LIMIT = 20


class RecoverLicenseHandler:
    """Handler for RecoverLicenseCommand."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        mailer: LicenseMailer,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories."""
        self.license_repository = license_repository
        self.mailer = mailer
        self.event_bus = event_bus or default_event_bus

    @staticmethod
    def pick_candidate(licenses: List[License], now) -> Optional[License]:
        """
        Choose the license to recover.

        Args:
            licenses: Licenses registered to the email
            now: Current time

        Returns:
            The most recently paid entitled, unexpired license, or None
        """
        candidates = [
            license
            for license in licenses
            if license.status.is_entitled and not license.is_expired(now)
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda license: license.paid_at or license.created_at)

    async def handle(self, command: RecoverLicenseCommand) -> RecoveryDTO:
        """
        Handle recover license command.

        Args:
            command: RecoverLicenseCommand

        Returns:
            RecoveryDTO with the same message whether or not a license exists

        Raises:
            InvalidEmailError: If the email is malformed
            RecoveryAlreadyUsedError: If the license was already recovered once
            NotificationError: If the email could not be sent
        """
        try:
            email = Email(command.email or "")
        except ValueError as exc:
            raise InvalidEmailError() from exc

        now = utcnow()
        licenses = await self.license_repository.find_by_email(
            email.value, limit=RECOVERY_CANDIDATE_LIMIT
        )
        candidate = self.pick_candidate(licenses, now)
        if candidate is None:
            license_recoveries_total.labels(result="no_candidate").inc()
            logger.info("Recovery requested without an active license")
            return RecoveryDTO(message=RECOVERY_MESSAGE)

        outcome = await self.license_repository.apply(
            candidate.code, LicenseActivationPolicy.consume_recovery(now)
        )
        if not outcome.ok:
            license_recoveries_total.labels(result=outcome.error.code.lower()).inc()
        outcome.unwrap()

        try:
            await self.mailer.send_recovery(outcome.license)
        except NotificationError:
            await self.license_repository.apply(
                candidate.code, LicenseActivationPolicy.release_recovery(utcnow())
            )
            license_recoveries_total.labels(result="email_failed").inc()
            logger.error(
                "Recovery email failed, recovery released",
                extra={"license_code": candidate.code},
            )
            raise

        license_recoveries_total.labels(result="sent").inc()
        await self.event_bus.publish(LicenseRecovered(code=candidate.code, email=email.value))
        return RecoveryDTO(message=RECOVERY_MESSAGE)
