"""Unit tests for PDF text extraction."""

import pytest

from studybuddy.infrastructure.documents import PdfTextError, extract_pdf_text


def test_extracts_page_text(make_pdf):
    text = extract_pdf_text(make_pdf("Photosynthesis", "Chlorophyll absorbs light"))

    assert "Photosynthesis" in text
    assert "Chlorophyll absorbs light" in text


def test_blank_page_yields_empty_text(make_pdf):
    assert extract_pdf_text(make_pdf()) == ""


def test_garbage_is_rejected():
    with pytest.raises(PdfTextError):
        extract_pdf_text(b"definitely not a pdf")
