"""
Document renderer port (interface).
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Sequence, Tuple


@dataclass(frozen=True)
class DocumentDescription:
    """
    Renderer-agnostic description of a printable document.

    Attributes:
        title: Heading printed at the top
        header_lines: Free text lines printed under the title
        rows: (label, value) pairs printed as a two column table
        footer_lines: Free text lines printed after the table
    """

    title: str
    header_lines: Sequence[str]
    rows: Sequence[Tuple[str, str]]
    footer_lines: Sequence[str] = ()


class DocumentRenderer(ABC):
    """Turns a document description into an opaque binary document."""

    content_type = "application/pdf"

    @abstractmethod
    async def render(self, document: DocumentDescription) -> bytes:
        """
        Render a document.

        Args:
            document: Description of the document

        Returns:
            Rendered document bytes

        Raises:
            DocumentRenderError: If rendering failed
        """
        pass
