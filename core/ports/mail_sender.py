"""
Mail sender port (interface).

The application layer hands fully rendered messages to a MailSender;
delivery is a single attempt and failures surface to the caller.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True)
class MailAttachment:
    """A binary attachment."""

    filename: str
    content: bytes
    mimetype: str = "application/pdf"


@dataclass(frozen=True)
class MailMessage:
    """An outgoing HTML email."""

    to: str
    subject: str
    html_body: str
    attachments: Tuple[MailAttachment, ...] = field(default_factory=tuple)
    from_email: Optional[str] = None


class MailSender(ABC):
    """Abstract mail sender."""

    @abstractmethod
    async def send(self, message: MailMessage) -> None:
        """
        Send a message.

        Args:
            message: Message to deliver

        Raises:
            NotificationError: If the message could not be delivered
        """
        pass
