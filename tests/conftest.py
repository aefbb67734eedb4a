import io

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

BATCH_SHEET_LINES = [
    "Job # 554992",
    "Formula ID: 202076",
    "Name: Clear Coat 50% Gallons 120",
]


def _text_page(c: canvas.Canvas, lines: list[str]) -> None:
    y = 720
    for line in lines:
        c.drawString(72, y, line)
        y -= 18


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Hello PDF World")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def text_native_pdf_bytes() -> bytes:
    """Two pages, each with several hundred characters of real text layer."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    for page in (1, 2):
        lines = [f"Page {page} line {i:02d} resin pigment solvent mix step" for i in range(10)]
        if page == 1:
            lines = BATCH_SHEET_LINES + lines
        _text_page(c, lines)
        c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    """A small white PNG image."""
    buf = io.BytesIO()
    Image.new("RGB", (64, 32), color="white").save(buf, format="PNG")
    return buf.getvalue()
