"""
RecordInvoiceHandler.

Computes the invoice breakdown from the pricing configuration and
records it in the ledger, at most once per payment.
"""

import logging
from datetime import datetime
from typing import Optional, Tuple

from billing.application.commands.record_invoice import RecordInvoiceCommand
from billing.domain.events import InvoiceIssued
from billing.domain.invoice import Invoice, InvoiceDraft
from billing.domain.pricing import PricingConfig, calculate_invoice_amounts, to_minor_units
from billing.ports.invoice_repository import InvoiceRepository
from core.domain.events import EventBus
from core.infrastructure.events import event_bus as default_event_bus
from core.metrics import invoices_issued_total

logger = logging.getLogger(__name__)


class RecordInvoiceHandler:
    """Handler for RecordInvoiceCommand."""

    def __init__(
        self,
        invoice_repository: InvoiceRepository,
        pricing: PricingConfig,
        event_bus: Optional[EventBus] = None,
    ):
        """Initialize handler with repositories and pricing."""
        self.invoice_repository = invoice_repository
        self.pricing = pricing
        self.event_bus = event_bus or default_event_bus

    async def handle(
        self, command: RecordInvoiceCommand, now: Optional[datetime] = None
    ) -> Tuple[Invoice, bool]:
        """
        Handle record invoice command.

        Args:
            command: RecordInvoiceCommand
            now: Issue time, defaults to the current time

        Returns:
            Tuple of (invoice, created)
        """
        amounts = calculate_invoice_amounts(self.pricing)
        if command.amount_paid is not None and command.amount_paid != to_minor_units(amounts.total):
            logger.warning(
                "Paid amount differs from configured invoice total",
                extra={
                    "payment_reference": command.payment_reference,
                    "amount_paid": command.amount_paid,
                    "invoice_total": str(amounts.total),
                },
            )

        draft = InvoiceDraft(
            email=command.email,
            base=amounts.base,
            iva=amounts.iva,
            ret=amounts.ret,
            total=amounts.total,
            iva_percent=self.pricing.iva_percent,
            retention_percent=self.pricing.retention_percent,
            currency=self.pricing.currency,
            method=command.method,
            source=command.source,
            payment_reference=command.payment_reference,
            order_id=command.order_id,
            license_code=command.license_code,
            paid_at=command.paid_at,
        )
        invoice, created = await self.invoice_repository.issue(draft, now)

        if created:
            invoices_issued_total.labels(method=command.method).inc()
            await self.event_bus.publish(
                InvoiceIssued(
                    invoice_number=invoice.invoice_number,
                    payment_reference=invoice.payment_reference,
                    total=str(invoice.total),
                )
            )
        else:
            logger.info(
                "Invoice %s already recorded for payment %s",
                invoice.invoice_number,
                command.payment_reference,
            )
        return invoice, created
