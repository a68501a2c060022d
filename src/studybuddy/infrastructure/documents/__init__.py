"""Text extraction from uploaded study documents."""

from studybuddy.infrastructure.documents.pdf_text import PdfTextError, extract_pdf_text

__all__ = ["PdfTextError", "extract_pdf_text"]
