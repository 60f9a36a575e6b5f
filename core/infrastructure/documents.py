"""
PDF implementation of the DocumentRenderer port, built on reportlab.
"""
import logging
from io import BytesIO
from xml.sax.saxutils import escape

from asgiref.sync import sync_to_async
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.domain.exceptions import DocumentRenderError
from core.ports.document_renderer import DocumentDescription, DocumentRenderer

logger = logging.getLogger(__name__)


class ReportLabPdfRenderer(DocumentRenderer):
    """Renders document descriptions to A4 PDF files."""

    @sync_to_async
    def render(self, document: DocumentDescription) -> bytes:
        """
        Render a document description to PDF.

        Args:
            document: Description of the document

        Returns:
            PDF bytes

        Raises:
            DocumentRenderError: If reportlab could not build the document
        """
        buffer = BytesIO()
        styles = getSampleStyleSheet()
        story = [Paragraph(escape(document.title), styles["Title"])]
        for line in document.header_lines:
            story.append(Paragraph(escape(line), styles["Normal"]))
        story.append(Spacer(1, 8 * mm))

        if document.rows:
            table = Table([list(row) for row in document.rows], colWidths=[110 * mm, 50 * mm])
            table.setStyle(
                TableStyle(
                    [
                        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
                        ("LINEBELOW", (0, 0), (-1, -2), 0.25, colors.lightgrey),
                        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                        ("BACKGROUND", (0, -1), (-1, -1), colors.whitesmoke),
                        ("TOPPADDING", (0, 0), (-1, -1), 6),
                        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
                    ]
                )
            )
            story.append(table)

        if document.footer_lines:
            story.append(Spacer(1, 8 * mm))
            for line in document.footer_lines:
                story.append(Paragraph(escape(line), styles["Normal"]))

        try:
            SimpleDocTemplate(buffer, pagesize=A4, title=document.title).build(story)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.error("PDF rendering failed for %s", document.title, exc_info=True)
            raise DocumentRenderError(f"PDF rendering failed: {exc}") from exc

        return buffer.getvalue()
