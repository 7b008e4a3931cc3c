from pathlib import Path

import fitz  # type: ignore[import]
import pytest
from hypothesis import given, settings, strategies as st

from pdfmarker.errors import DecodeFailureError
from pdfmarker.geometry.page import PageGeometry
from pdfmarker.pdf.ingestion import EncryptedPdfError, PdfDocument, PdfOpenError, serialize_pdf
from tests.helpers.pdf_factory import make_encrypted_pdf, make_pdf, make_pdf_file


class TestPdfPage:
    def test_page_properties(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 1)

        with PdfDocument(pdf_path) as doc:
            pages = list(doc.pages())

            assert len(pages) == 1
            page = pages[0]
            assert page.index == 0
            assert page.geometry == PageGeometry(width=595, height=842)
            assert isinstance(page.as_pymupdf_page(), fitz.Page)


class TestPdfDocument:
    def test_valid_pdf_opens_successfully(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 3)

        with PdfDocument(pdf_path) as doc:
            assert doc.page_count == 3
            assert doc.path == pdf_path
            assert [page.index for page in doc.pages()] == [0, 1, 2]

    def test_opens_from_bytes(self):
        with PdfDocument(make_pdf(2, widths=[300, 400])) as doc:
            assert doc.path is None
            assert doc.page_geometries() == [PageGeometry(300, 842), PageGeometry(400, 842)]
            assert doc.page_geometry(1).width == 400
            with pytest.raises(IndexError):
                doc.page_geometry(2)

    def test_nonexistent_file_raises_error(self):
        with pytest.raises(PdfOpenError, match="PDF file does not exist"):
            PdfDocument(Path("nonexistent_file.pdf"))

    def test_encrypted_pdf_raises_error(self, tmp_path):
        with pytest.raises(EncryptedPdfError, match="PDF is encrypted"):
            PdfDocument(make_encrypted_pdf(tmp_path))

    def test_corrupted_pdf_raises_error(self, tmp_path):
        corrupted_path = tmp_path / "corrupted.pdf"
        corrupted_path.write_bytes(b"This is not a valid PDF file")

        with pytest.raises(PdfOpenError):
            PdfDocument(corrupted_path)

    def test_open_errors_are_decode_failures(self):
        with pytest.raises(DecodeFailureError):
            PdfDocument(b"garbage")

    def test_close_is_idempotent(self):
        doc = PdfDocument(make_pdf(1))
        doc.close()
        doc.close()


class TestSerialization:
    def test_serialize_is_reproducible(self):
        with PdfDocument(make_pdf(2)) as doc:
            first = serialize_pdf(doc.as_pymupdf_document())
            second = serialize_pdf(doc.as_pymupdf_document())
        assert first == second


class TestPdfProcessingProperties:
    @settings(max_examples=10, deadline=None)
    @given(page_count=st.integers(min_value=1, max_value=8))
    def test_page_iteration_is_deterministic(self, page_count):
        with PdfDocument(make_pdf(page_count)) as doc:
            pages1 = [page.geometry for page in doc.pages()]
            pages2 = [page.geometry for page in doc.pages()]
            assert len(pages1) == page_count
            assert pages1 == pages2
