"""
License mailer.

Renders and sends license related emails that carry no invoice.
"""
import logging
from typing import Optional

from django.conf import settings
from django.template.loader import render_to_string

from core.ports.mail_sender import MailMessage, MailSender
from licenses.domain.license import License

logger = logging.getLogger(__name__)


class LicenseMailer:
    """Sends license code emails."""

    def __init__(self, mail_sender: MailSender, support_email: Optional[str] = None):
        """
        Initialize mailer.

        Args:
            mail_sender: Outgoing mail port
            support_email: Address shown for support questions
        """
        self.mail_sender = mail_sender
        self.support_email = support_email or settings.SUPPORT_EMAIL

    async def send_recovery(self, license: License) -> None:
        """
        Send a lost license code back to its owner.

        Args:
            license: License being recovered

        Raises:
            NotificationError: If the email could not be delivered
        """
        html = render_to_string(
            "licenses/email/recovery.html",
            {
                "code": license.code,
                "expires_at": license.expires_at,
                "support_email": self.support_email,
            },
        )
        await self.mail_sender.send(
            MailMessage(to=license.email, subject="Your license code", html_body=html)
        )
        logger.info("Recovery email sent for license %s", license.code)
