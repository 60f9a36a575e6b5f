"""
ListInvoicesHandler.

Handles the list invoices query for the admin ledger view.
"""

from datetime import datetime, time, timedelta
from decimal import Decimal
from typing import Optional

from django.utils import timezone

from billing.application.dto.invoice_dto import InvoiceDTO, InvoiceListDTO, InvoiceTotalsDTO
from billing.application.queries.list_invoices import ListInvoicesQuery
from billing.domain.pricing import to_money
from billing.ports.invoice_repository import InvoiceRepository
from core.domain.exceptions import InvalidInputError


def _start_of_day(day) -> Optional[datetime]:
    if day is None:
        return None
    return timezone.make_aware(datetime.combine(day, time.min))


class ListInvoicesHandler:
    """Handler for ListInvoicesQuery."""

    def __init__(self, invoice_repository: InvoiceRepository):
        """Initialize handler with repository."""
        self.invoice_repository = invoice_repository

    async def handle(self, query: ListInvoicesQuery) -> InvoiceListDTO:
        """
        Handle list invoices query.

        Args:
            query: ListInvoicesQuery

        Returns:
            InvoiceListDTO with entries and totals

        Raises:
            InvalidInputError: If the range is inverted
        """
        if query.start_date and query.end_date and query.start_date > query.end_date:
            raise InvalidInputError("startDate must not be after endDate", code="INVALID_DATE_RANGE")

        start = _start_of_day(query.start_date)
        end = _start_of_day(query.end_date + timedelta(days=1)) if query.end_date else None
        invoices = await self.invoice_repository.list_between(start, end)

        items = [
            InvoiceDTO(
                invoice_number=invoice.invoice_number,
                date=invoice.issued_at,
                email=invoice.email,
                base=invoice.base,
                iva=invoice.iva,
                ret=invoice.ret,
                total=invoice.total,
                currency=invoice.currency,
                method=invoice.method,
                order_id=invoice.order_id,
                license_code=invoice.license_code,
            )
            for invoice in invoices
        ]
        totals = InvoiceTotalsDTO(
            count=len(items),
            base=to_money(sum((item.base for item in items), Decimal("0"))),
            iva=to_money(sum((item.iva for item in items), Decimal("0"))),
            ret=to_money(sum((item.ret for item in items), Decimal("0"))),
            total=to_money(sum((item.total for item in items), Decimal("0"))),
        )
        return InvoiceListDTO(invoices=items, totals=totals)
