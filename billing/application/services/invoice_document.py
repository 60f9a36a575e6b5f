"""
Invoice document layout.

Turns a ledger entry into a renderer-agnostic document description.
"""
from typing import Dict, List

from django.conf import settings
from django.utils import timezone

from billing.domain.invoice import Invoice
from core.ports.document_renderer import DocumentDescription


def format_amount(amount, currency: str) -> str:
    """Format a money amount for print."""
    return f"{amount:.2f} {currency.upper()}"


def _percent(value) -> str:
    return f"{value.normalize():f}"


def build_invoice_document(invoice: Invoice, issuer: Dict[str, str] = None) -> DocumentDescription:
    """
    Describe the printable invoice.

    Args:
        invoice: Ledger entry
        issuer: Issuer details (defaults to settings.INVOICE_ISSUER)

    Returns:
        DocumentDescription ready for a DocumentRenderer
    """
    issuer = issuer if issuer is not None else getattr(settings, "INVOICE_ISSUER", {})
    header: List[str] = [
        line
        for line in (
            issuer.get("name"),
            issuer.get("tax_id"),
            issuer.get("address"),
            issuer.get("phone"),
            issuer.get("email"),
        )
        if line
    ]
    issued_on = timezone.localtime(invoice.issued_at) if timezone.is_aware(invoice.issued_at) else invoice.issued_at
    header.append(f"Date: {issued_on:%d/%m/%Y}")
    header.append(f"Billed to: {invoice.email}")

    return DocumentDescription(
        title=f"Invoice {invoice.invoice_number}",
        header_lines=header,
        rows=[
            ("Taxable base", format_amount(invoice.base, invoice.currency)),
            (f"VAT ({_percent(invoice.iva_percent)}%)", format_amount(invoice.iva, invoice.currency)),
            (
                f"Withholding (-{_percent(invoice.retention_percent)}%)",
                "-" + format_amount(invoice.ret, invoice.currency),
            ),
            ("Total paid", format_amount(invoice.total, invoice.currency)),
        ],
        footer_lines=[f"License code: {invoice.license_code}"] if invoice.license_code else [],
    )


def invoice_filename(invoice: Invoice) -> str:
    """Attachment file name of an invoice."""
    return f"Invoice_{invoice.slug}.pdf"
