"""Turns uploaded study documents into text for the AI helpers."""

import asyncio

from studybuddy.core.config import get_settings
from studybuddy.core.logging import get_logger
from studybuddy.domain.errors import BadRequestError
from studybuddy.infrastructure.documents import PdfTextError, extract_pdf_text

logger = get_logger(__name__)

PDF_MIME_TYPE = "application/pdf"


class DocumentTextService:
    """Extracts PDF text within the AI helpers' limits."""

    def __init__(self) -> None:
        self.settings = get_settings()

    async def extract_pdf(self, content: bytes, mime_type: str) -> str:
        """Extract the text of a PDF.

        Args:
            content: File bytes.
            mime_type: Declared content type.

        Returns:
            The stripped text, short enough to send to ``generate``.

        Raises:
            BadRequestError: If the file is not a PDF, is empty or too large,
                cannot be parsed, holds no text, or its text exceeds the AI
                text limit.
        """
        if mime_type != PDF_MIME_TYPE:
            raise BadRequestError("Invalid file type. Please upload a PDF file.")
        if not content:
            raise BadRequestError("File is empty")
        limit = self.settings.ai_max_pdf_size
        if len(content) > limit:
            raise BadRequestError(f"PDF exceeds the {limit // (1024 * 1024)}MB limit")

        try:
            # Parsing is CPU bound
            text = await asyncio.to_thread(extract_pdf_text, content)
        except PdfTextError as e:
            logger.info("PDF could not be parsed", size=len(content), error=str(e))
            raise BadRequestError("Could not read the PDF") from e

        if not text:
            raise BadRequestError("No text found in PDF. The file might be image-based or empty.")
        max_length = self.settings.ai_max_text_length
        if len(text) > max_length:
            raise BadRequestError(
                f"Extracted text exceeds {max_length:,} character limit. "
                "Please use a shorter document."
            )

        logger.info("PDF text extracted", size=len(content), characters=len(text))
        return text
