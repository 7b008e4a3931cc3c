"""Helper functions for building test PDFs and images in memory."""

import base64
import io
from pathlib import Path
from typing import Optional, Sequence, Tuple

import fitz  # type: ignore[import]
from PIL import Image


def make_pdf(page_count: int = 1, widths: Optional[Sequence[float]] = None, height: float = 842) -> bytes:
    """
    Create a PDF whose page i is ``widths[i]`` points wide and carries the text "Page i".

    Distinct widths let tests identify which source page ended up where.
    """
    if widths is None:
        widths = [595] * page_count

    doc = fitz.open()
    try:
        for i in range(page_count):
            page = doc.new_page(width=widths[i], height=height)
            page.insert_text((50, 50), f"Page {i}")
        return doc.tobytes()
    finally:
        doc.close()


def make_shifted_pdf(mediabox: Tuple[float, float, float, float] = (0, 100, 600, 900)) -> bytes:
    """Create a one-page PDF whose /MediaBox does not start at the origin."""
    doc = fitz.open()
    try:
        page = doc.new_page()
        doc.xref_set_key(page.xref, "MediaBox", "[{} {} {} {}]".format(*mediabox))
        return doc.tobytes()
    finally:
        doc.close()


def make_pdf_file(tmp_path: Path, page_count: int = 1, name: str = "test.pdf", **kwargs) -> Path:
    path = tmp_path / name
    path.write_bytes(make_pdf(page_count, **kwargs))
    return path


def make_encrypted_pdf(tmp_path: Path) -> Path:
    """Create an encrypted PDF with proper file handle management."""
    pdf_path = tmp_path / "encrypted.pdf"

    doc = fitz.open()
    try:
        page = doc.new_page()
        page.insert_text((50, 50), "Encrypted content")
        pdf_bytes = doc.tobytes(encryption=fitz.PDF_ENCRYPT_AES_256, user_pw="test", owner_pw="test")
        pdf_path.write_bytes(pdf_bytes)
    finally:
        doc.close()

    return pdf_path


def png_bytes(size: Tuple[int, int] = (100, 50), color="red", mode: str = "RGB") -> bytes:
    img = Image.new(mode, size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def signature_png(size: Tuple[int, int] = (60, 30)) -> bytes:
    """White RGB image with a black bar through the middle."""
    img = Image.new("RGB", size, color="white")
    width, height = size
    for x in range(width // 4, 3 * width // 4):
        for y in range(height // 3, 2 * height // 3):
            img.putpixel((x, y), (0, 0, 0))
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def jpeg_bytes(size: Tuple[int, int] = (80, 80), color="blue") -> bytes:
    img = Image.new("RGB", size, color=color)
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG")
    return buffer.getvalue()


def data_uri(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"
