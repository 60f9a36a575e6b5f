"""
Django implementation of the MailSender port.

Messages are delivered through Django's configured EMAIL_BACKEND
(SMTP in production, console in development, locmem in tests).
"""
import logging
import smtplib

from asgiref.sync import sync_to_async
from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

from core.domain.exceptions import NotificationError
from core.metrics import emails_sent_total
from core.ports.mail_sender import MailMessage, MailSender

logger = logging.getLogger(__name__)


class DjangoMailSender(MailSender):
    """MailSender backed by django.core.mail."""

    @sync_to_async
    def send(self, message: MailMessage) -> None:
        """
        Send an HTML message with a plain text alternative.

        Args:
            message: Message to deliver

        Raises:
            NotificationError: If the backend rejected the message
        """
        email = EmailMultiAlternatives(
            subject=message.subject,
            body=strip_tags(message.html_body),
            from_email=message.from_email or settings.DEFAULT_FROM_EMAIL,
            to=[message.to],
        )
        email.attach_alternative(message.html_body, "text/html")
        for attachment in message.attachments:
            email.attach(attachment.filename, attachment.content, attachment.mimetype)

        try:
            email.send(fail_silently=False)
        except (smtplib.SMTPException, OSError) as exc:
            emails_sent_total.labels(status="failed").inc()
            logger.error(
                "Email delivery failed",
                extra={"subject": message.subject, "error": str(exc)},
            )
            raise NotificationError(f"Email delivery failed: {exc}") from exc

        emails_sent_total.labels(status="sent").inc()
        logger.info(
            "Email sent",
            extra={"subject": message.subject, "attachments": len(message.attachments)},
        )
