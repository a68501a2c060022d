"""PDF text extraction with pypdf."""

import io

from pypdf import PdfReader
from pypdf.errors import PyPdfError


class PdfTextError(Exception):
    """Raised when a file cannot be read as a PDF."""

    pass


def extract_pdf_text(content: bytes) -> str:
    """Return the text of every page, one page per line block.

    Image-only pages contribute nothing, so a scanned document yields
    an empty string.

    Raises:
        PdfTextError: If the bytes are not a readable PDF (corrupt or
            encrypted).
    """
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except PyPdfError as e:
        raise PdfTextError(str(e)) from e
    return "\n".join(pages).strip()
