"""
Unit tests for RecoverLicenseHandler.
"""

from dataclasses import replace
from datetime import timedelta

import pytest

from activations.application.commands.recover_license import RecoverLicenseCommand
from activations.application.handlers.recover_license_handler import (
    RECOVERY_MESSAGE,
    RecoverLicenseHandler,
)
from core.domain.events import utcnow
from core.domain.exceptions import (
    InvalidEmailError,
    NotificationError,
    RecoveryAlreadyUsedError,
)
from core.domain.value_objects import LicenseStatus
from licenses.application.services.license_mailer import LicenseMailer
from licenses.domain.events import LicenseRecovered


@pytest.fixture
def handler(license_repository, mail_sender, event_bus):
    """Fixture for a RecoverLicenseHandler with a recording mail sender."""
    mailer = LicenseMailer(mail_sender, support_email="support@example.com")
    return RecoverLicenseHandler(license_repository, mailer, event_bus)


@pytest.mark.asyncio
class TestRecoverLicenseHandler:
    """Tests for RecoverLicenseHandler."""

    async def test_unknown_email_gets_the_same_answer(self, handler, mail_sender):
        dto = await handler.handle(RecoverLicenseCommand("nobody@example.com"))

        assert dto.message == RECOVERY_MESSAGE
        assert mail_sender.sent == []

    async def test_sends_code_once(
        self, handler, license_repository, sample_license, mail_sender, collected
    ):
        collector = collected(LicenseRecovered)
        license_repository.licenses[sample_license.code] = sample_license

        dto = await handler.handle(RecoverLicenseCommand(" Buyer@Example.com "))

        assert dto.message == RECOVERY_MESSAGE
        assert len(mail_sender.sent) == 1
        assert mail_sender.sent[0].to == "buyer@example.com"
        assert sample_license.code in mail_sender.sent[0].html_body
        assert license_repository.licenses[sample_license.code].recovery_used is True
        assert len(collector.events) == 1

        with pytest.raises(RecoveryAlreadyUsedError):
            await handler.handle(RecoverLicenseCommand("buyer@example.com"))
        assert len(mail_sender.sent) == 1

    async def test_revoked_license_is_not_recovered(
        self, handler, license_repository, sample_license, mail_sender
    ):
        revoked = replace(sample_license, status=LicenseStatus.REVOKED)
        license_repository.licenses[revoked.code] = revoked

        dto = await handler.handle(RecoverLicenseCommand("buyer@example.com"))

        assert dto.message == RECOVERY_MESSAGE
        assert mail_sender.sent == []

    async def test_mail_failure_releases_recovery(
        self, handler, license_repository, sample_license, mail_sender
    ):
        license_repository.licenses[sample_license.code] = sample_license
        mail_sender.fail = True

        with pytest.raises(NotificationError):
            await handler.handle(RecoverLicenseCommand("buyer@example.com"))

        assert license_repository.licenses[sample_license.code].recovery_used is False

        mail_sender.fail = False
        await handler.handle(RecoverLicenseCommand("buyer@example.com"))
        assert len(mail_sender.sent) == 1

    async def test_invalid_email(self, handler):
        with pytest.raises(InvalidEmailError):
            await handler.handle(RecoverLicenseCommand("not-an-email"))


def test_pick_candidate_prefers_most_recently_paid(license_factory):
    now = utcnow()
    older = license_factory(code="AAAA-AAAA-AAAA", paid_at=now - timedelta(days=30), now=now)
    newer = license_factory(code="BBBB-BBBB-BBBB", payment_reference="cs_2", now=now)

    assert RecoverLicenseHandler.pick_candidate([older, newer], now) is newer
