from __future__ import annotations

from pathlib import Path
from typing import Iterator, List, Union

import fitz  # type: ignore[import]

from ..geometry.page import PageGeometry
from ..errors import DecodeFailureError


class PdfOpenError(DecodeFailureError):
    """Raised when a PDF cannot be opened."""


class EncryptedPdfError(PdfOpenError):
    """Raised when a PDF is encrypted and cannot be read."""


class PdfPage:
    def __init__(self, page: fitz.Page, index: int) -> None:
        self._page = page
        self._index = index

    @property
    def index(self) -> int:
        return self._index

    @property
    def width(self) -> float:
        return float(self._page.rect.width)

    @property
    def height(self) -> float:
        return float(self._page.rect.height)

    @property
    def geometry(self) -> PageGeometry:
        return PageGeometry(width=self.width, height=self.height)

    def as_pymupdf_page(self) -> fitz.Page:
        """Return the underlying PyMuPDF page object."""
        return self._page


class PdfDocument:
    """Read-only view over a PDF opened from a path or from bytes."""

    def __init__(self, source: Union[Path, str, bytes, bytearray]) -> None:
        if isinstance(source, (bytes, bytearray)):
            self._path = None
            self._doc = self._open_stream(bytes(source))
        else:
            self._path = Path(source)
            self._doc = self._open_path(self._path)

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def page_count(self) -> int:
        return self._doc.page_count

    def pages(self) -> Iterator[PdfPage]:
        """Iterate over all pages in the document."""
        for i in range(self.page_count):
            yield PdfPage(self._doc.load_page(i), i)

    def page_geometry(self, page_index: int) -> PageGeometry:
        if not 0 <= page_index < self.page_count:
            raise IndexError(f"page {page_index} out of range 0..{self.page_count - 1}")
        return PdfPage(self._doc.load_page(page_index), page_index).geometry

    def page_geometries(self) -> List[PageGeometry]:
        return [page.geometry for page in self.pages()]

    def as_pymupdf_document(self) -> fitz.Document:
        return self._doc

    def close(self) -> None:
        """Close the PDF document and release file handles."""
        if getattr(self, '_doc', None) is not None:
            self._doc.close()
            self._doc = None

    def __enter__(self) -> PdfDocument:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _open_path(self, path: Path) -> fitz.Document:
        if not path.exists():
            raise PdfOpenError(f"PDF file does not exist: {path}")

        try:
            doc = fitz.open(path)
        except Exception as exc:
            raise PdfOpenError(f"Failed to open PDF: {path}") from exc

        return self._check_readable(doc, str(path))

    def _open_stream(self, data: bytes) -> fitz.Document:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:
            raise PdfOpenError("Failed to open PDF from bytes") from exc

        return self._check_readable(doc, "<bytes>")

    @staticmethod
    def _check_readable(doc: fitz.Document, label: str) -> fitz.Document:
        if doc.needs_pass:
            doc.close()
            raise EncryptedPdfError(f"PDF is encrypted: {label}")
        if not doc.is_pdf:
            doc.close()
            raise PdfOpenError(f"Not a PDF document: {label}")
        if doc.page_count == 0:
            doc.close()
            raise PdfOpenError(f"PDF has no pages: {label}")
        return doc


def serialize_pdf(doc: fitz.Document, deflate: bool = True) -> bytes:
    """
    Serialize a document to bytes reproducibly.

    ``no_new_id`` keeps the trailer /ID stable so identical inputs give
    identical output.
    """
    return doc.tobytes(garbage=3, deflate=deflate, no_new_id=True)
