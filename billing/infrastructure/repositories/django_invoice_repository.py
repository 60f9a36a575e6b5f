"""
Django implementation of InvoiceRepository port.

The per-year counter row is the one global serialization point:
it is locked for the whole numbering transaction, so concurrent
allocations queue up instead of retrying with another number.
"""
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from asgiref.sync import sync_to_async
from django.db import IntegrityError
from django.utils import timezone

from billing.domain.invoice import Invoice, InvoiceDraft, InvoiceNumber
from billing.infrastructure.models import Invoice as InvoiceModel
from billing.infrastructure.models import InvoiceCounter
from billing.ports.invoice_repository import InvoiceRepository
from core.infrastructure.database import run_in_transaction

logger = logging.getLogger(__name__)


def invoice_year(moment: datetime) -> int:
    """Calendar year of a moment in the configured time zone."""
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment.year


class DjangoInvoiceRepository(InvoiceRepository):
    """Django ORM implementation of InvoiceRepository."""

    def _to_domain(self, model: InvoiceModel) -> Invoice:
        """
        Convert Django model to domain entity.

        Args:
            model: Django Invoice model

        Returns:
            Invoice domain entity
        """
        return Invoice(
            number=InvoiceNumber(sequence=model.sequence, year=model.year),
            issued_at=model.issued_at,
            email=model.email,
            base=model.base,
            iva=model.iva,
            ret=model.ret,
            total=model.total,
            iva_percent=model.iva_percent,
            retention_percent=model.retention_percent,
            currency=model.currency,
            method=model.method,
            source=model.source,
            payment_reference=model.payment_reference,
            order_id=model.order_id,
            license_code=model.license_code,
            paid_at=model.paid_at,
        )

    def _to_model(self, invoice: Invoice) -> InvoiceModel:
        """
        Convert domain entity to an unsaved Django model.

        Args:
            invoice: Invoice domain entity

        Returns:
            Django Invoice model
        """
        return InvoiceModel(
            slug=invoice.slug,
            invoice_number=invoice.invoice_number,
            sequence=invoice.number.sequence,
            year=invoice.number.year,
            issued_at=invoice.issued_at,
            email=invoice.email,
            base=invoice.base,
            iva=invoice.iva,
            ret=invoice.ret,
            total=invoice.total,
            iva_percent=invoice.iva_percent,
            retention_percent=invoice.retention_percent,
            currency=invoice.currency,
            method=invoice.method,
            source=invoice.source,
            payment_reference=invoice.payment_reference,
            order_id=invoice.order_id,
            license_code=invoice.license_code,
            paid_at=invoice.paid_at,
        )

    def _lock_counter(self, year: int) -> InvoiceCounter:
        """Lock (creating it if needed) the counter row of a year."""
        counter, created = InvoiceCounter.objects.select_for_update().get_or_create(
            year=year, defaults={"current": 0}
        )
        if created:
            logger.info("Started invoice counter for %s", year)
        return counter

    def _consume(self, counter: InvoiceCounter) -> InvoiceNumber:
        """Advance a locked counter and return the number handed out."""
        counter.current += 1
        counter.save(update_fields=["current", "updated_at"])
        return InvoiceNumber(sequence=counter.current, year=counter.year)

    @sync_to_async
    def next_invoice_number(self, now: datetime) -> InvoiceNumber:
        """
        Consume the next number of the calendar year of `now`.

        Args:
            now: Reference time

        Returns:
            Allocated invoice number
        """
        year = invoice_year(now)
        return run_in_transaction(lambda: self._consume(self._lock_counter(year)))

    @sync_to_async
    def issue(
        self, draft: InvoiceDraft, now: Optional[datetime] = None
    ) -> Tuple[Invoice, bool]:
        """
        Number and record an invoice, once per payment.

        The counter is locked before the duplicate check, so a second
        issuer for the same payment waits and then finds the first
        invoice instead of burning a number. The year comes from the
        issue time, never from the payment.

        Args:
            draft: Unnumbered invoice
            now: Issue time, defaults to the current time

        Returns:
            Tuple of (invoice, created)
        """
        issued_at = now or timezone.now()

        def _issue() -> Tuple[InvoiceModel, bool]:
            counter = self._lock_counter(invoice_year(issued_at))
            existing = InvoiceModel.objects.filter(
                source=draft.source, payment_reference=draft.payment_reference
            ).first()
            if existing is not None:
                return existing, False
            invoice = Invoice.from_draft(draft, self._consume(counter), issued_at)
            model = self._to_model(invoice)
            model.save(force_insert=True)
            return model, True

        try:
            model, created = run_in_transaction(_issue)
        except IntegrityError:
            # A concurrent issuer for the same payment committed first; our
            # counter increment was rolled back with the failed insert.
            model = InvoiceModel.objects.get(
                source=draft.source, payment_reference=draft.payment_reference
            )
            created = False

        if created:
            logger.info(
                "Invoice recorded",
                extra={
                    "invoice_number": model.invoice_number,
                    "payment_reference": model.payment_reference,
                    "total": str(model.total),
                },
            )
        return self._to_domain(model), created

    @sync_to_async
    def find_by_payment_reference(
        self, source: str, payment_reference: str
    ) -> Optional[Invoice]:
        """Find the invoice recorded for a payment."""
        model = InvoiceModel.objects.filter(
            source=source, payment_reference=payment_reference
        ).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def find_by_number(self, number: InvoiceNumber) -> Optional[Invoice]:
        """Find an invoice by number."""
        model = InvoiceModel.objects.filter(slug=number.slug).first()
        return self._to_domain(model) if model else None

    @sync_to_async
    def list_between(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> List[Invoice]:
        """List invoices issued in [start, end)."""
        queryset = InvoiceModel.objects.all()
        if start is not None:
            queryset = queryset.filter(issued_at__gte=start)
        if end is not None:
            queryset = queryset.filter(issued_at__lt=end)
        return [self._to_domain(model) for model in queryset.order_by("issued_at", "sequence")]
