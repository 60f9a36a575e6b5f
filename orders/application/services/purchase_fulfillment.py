"""
Purchase fulfillment pipeline.

Both payment entry points (trusted webhook events and operator-confirmed
manual orders) end here:

    license exists? -> issue license -> number + record invoice
                    -> render invoice PDF -> email purchaser

Every step is keyed by the payment reference, so re-running the
pipeline after a crash resumes from whatever was already committed.
A failed email never rolls back the license or the invoice; it is
reported in the result instead.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from django.conf import settings
from django.template.loader import render_to_string

from billing.application.commands.record_invoice import RecordInvoiceCommand
from billing.application.handlers.record_invoice_handler import RecordInvoiceHandler
from billing.application.services.invoice_document import (
    build_invoice_document,
    format_amount,
    invoice_filename,
)
from billing.domain.invoice import Invoice
from billing.domain.pricing import PricingConfig
from billing.ports.invoice_repository import InvoiceRepository
from core.domain.events import EventBus
from core.domain.exceptions import DocumentRenderError, NotificationError
from core.domain.value_objects import LicenseSource
from core.infrastructure.events import event_bus as default_event_bus
from core.ports.document_renderer import DocumentRenderer
from core.ports.mail_sender import MailAttachment, MailMessage, MailSender
from licenses.application.commands.issue_license import IssueLicenseCommand
from licenses.application.handlers.issue_license_handler import IssueLicenseHandler
from licenses.domain.license_code import generate_license_code
from licenses.ports.license_repository import LicenseRepository

logger = logging.getLogger(__name__)

PURCHASE_EMAIL_SUBJECT = "Your license and invoice"
PURCHASE_EMAIL_TEMPLATE = "orders/email/purchase.html"


@dataclass
class PurchaseRequest:
    """One confirmed payment to fulfill."""

    email: str
    source: LicenseSource
    method: str  # stripe | bizum | transfer
    payment_reference: str
    paid_at: datetime
    amount_paid: Optional[int] = None  # Minor currency units
    currency: Optional[str] = None
    order_id: Optional[str] = None


@dataclass
class FulfillmentResult:
    """What the pipeline did for one payment."""

    license_code: str
    invoice_number: str
    license_created: bool = False
    invoice_created: bool = False
    email_sent: bool = False
    email_error: Optional[str] = None
    already_processed: bool = False


class PurchaseFulfillmentService:
    """Issues, invoices and notifies one payment at a time."""

    def __init__(
        self,
        license_repository: LicenseRepository,
        invoice_repository: InvoiceRepository,
        mail_sender: MailSender,
        document_renderer: DocumentRenderer,
        pricing: PricingConfig,
        event_bus: Optional[EventBus] = None,
        code_generator: Callable[[], str] = generate_license_code,
        support_email: Optional[str] = None,
    ):
        """
        Initialize the pipeline.

        Args:
            license_repository: License persistence
            invoice_repository: Invoice ledger
            mail_sender: Outgoing mail port
            document_renderer: Invoice PDF renderer
            pricing: Invoice pricing configuration
            event_bus: Domain event bus
            code_generator: License code generator
            support_email: Address shown in the purchase email
        """
        self.license_repository = license_repository
        self.invoice_repository = invoice_repository
        self.mail_sender = mail_sender
        self.document_renderer = document_renderer
        self.pricing = pricing
        self.event_bus = event_bus or default_event_bus
        self.support_email = support_email or settings.SUPPORT_EMAIL
        self.issue_handler = IssueLicenseHandler(
            license_repository, event_bus=self.event_bus, code_generator=code_generator
        )
        self.invoice_handler = RecordInvoiceHandler(
            invoice_repository, pricing, event_bus=self.event_bus
        )

    async def fulfill(
        self, request: PurchaseRequest, notify_if_processed: bool = False
    ) -> FulfillmentResult:
        """
        Run the pipeline for one payment.

        Args:
            request: Confirmed payment
            notify_if_processed: Send the purchase email even when license
                and invoice already existed

        Returns:
            FulfillmentResult

        Raises:
            LicenseCodeExhaustedError: If no license code could be allocated
            StorageUnavailableError: If storage kept failing
        """
        existing_license = await self.license_repository.find_by_payment_reference(
            request.source, request.payment_reference
        )
        existing_invoice = await self.invoice_repository.find_by_payment_reference(
            request.source.value, request.payment_reference
        )
        if existing_license and existing_invoice and not notify_if_processed:
            logger.info(
                "Payment %s already fulfilled with license %s",
                request.payment_reference,
                existing_license.code,
            )
            return FulfillmentResult(
                license_code=existing_license.code,
                invoice_number=existing_invoice.invoice_number,
                already_processed=True,
            )

        issued = await self.issue_handler.handle(
            IssueLicenseCommand(
                email=request.email,
                source=request.source,
                payment_reference=request.payment_reference,
                paid_at=request.paid_at,
                amount_total=request.amount_paid,
                currency=request.currency,
            )
        )
        invoice, invoice_created = await self.invoice_handler.handle(
            RecordInvoiceCommand(
                email=request.email,
                method=request.method,
                source=request.source.value,
                payment_reference=request.payment_reference,
                paid_at=request.paid_at,
                order_id=request.order_id,
                license_code=issued.code,
                amount_paid=request.amount_paid,
            )
        )

        result = FulfillmentResult(
            license_code=issued.code,
            invoice_number=invoice.invoice_number,
            license_created=issued.created,
            invoice_created=invoice_created,
        )
        try:
            await self.send_purchase_email(request.email, issued.code, issued.expires_at, invoice)
            result.email_sent = True
        except NotificationError as exc:
            result.email_error = exc.message
            logger.warning(
                "Purchase email failed; license and invoice kept",
                extra={
                    "license_code": issued.code,
                    "invoice_number": invoice.invoice_number,
                    "payment_reference": request.payment_reference,
                },
                exc_info=True,
            )
        return result

    async def send_purchase_email(
        self, email: str, license_code: str, expires_at: datetime, invoice: Invoice
    ) -> None:
        """
        Email the license code with the invoice attached.

        A rendering failure only drops the attachment.

        Raises:
            NotificationError: If the email could not be delivered
        """
        attachments = []
        try:
            pdf = await self.document_renderer.render(build_invoice_document(invoice))
            attachments.append(MailAttachment(filename=invoice_filename(invoice), content=pdf))
        except DocumentRenderError:
            logger.warning(
                "Invoice %s could not be rendered; sending without attachment",
                invoice.invoice_number,
                exc_info=True,
            )

        html = render_to_string(
            PURCHASE_EMAIL_TEMPLATE,
            {
                "code": license_code,
                "expires_at": expires_at,
                "invoice": invoice,
                "base": format_amount(invoice.base, invoice.currency),
                "iva": format_amount(invoice.iva, invoice.currency),
                "ret": format_amount(invoice.ret, invoice.currency),
                "total": format_amount(invoice.total, invoice.currency),
                "has_attachment": bool(attachments),
                "support_email": self.support_email,
            },
        )
        await self.mail_sender.send(
            MailMessage(
                to=email,
                subject=PURCHASE_EMAIL_SUBJECT,
                html_body=html,
                attachments=tuple(attachments),
            )
        )
        logger.info(
            "Purchase email sent",
            extra={"license_code": license_code, "invoice_number": invoice.invoice_number},
        )
