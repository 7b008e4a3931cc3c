"""
Page extraction into new PDFs.

Pages are copied in the caller's order, duplicates included, either into
one combined document or into one document per selected page.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Union

import fitz  # type: ignore[import]

from ..cancellation import CancellationToken, check_cancelled
from ..config import Settings
from ..documents.model import Document
from ..documents.repository import DocumentRepository
from ..errors import InvalidArgumentError
from ..logging import get_logger
from .ingestion import PdfDocument, serialize_pdf

logger = get_logger(__name__)

SplitResult = Union[bytes, List[bytes]]


def select_page_indices(page_indices: Optional[Sequence[int]], page_count: int) -> List[int]:
    """
    Resolve a page selection against a page count.

    An empty or missing selection means every page. Out-of-range indices
    are dropped; order and duplicates are kept.

    Raises:
        InvalidArgumentError: If nothing valid remains
    """
    if not page_indices:
        return list(range(page_count))
    selected = [idx for idx in page_indices if 0 <= idx < page_count]
    if not selected:
        raise InvalidArgumentError("No valid page indices provided")
    dropped = len(page_indices) - len(selected)
    if dropped:
        logger.warning(f"Ignoring {dropped} out-of-range page indices (page count {page_count})")
    return selected


class PageSplitter:
    def __init__(self, repository: DocumentRepository, settings: Optional[Settings] = None) -> None:
        self._repository = repository
        self._settings = settings or Settings()

    def split(
        self,
        document: Document,
        page_indices: Optional[Sequence[int]] = None,
        split_into_individual: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SplitResult:
        """
        Extract pages of ``document`` into new PDFs.

        Returns:
            One serialized PDF holding the selected pages, or with
            ``split_into_individual`` a list of single-page PDFs in
            selection order
        """
        check_cancelled(cancel_token, "document fetch")
        source_bytes = self._repository.get_document_bytes(document.source_locator)

        with PdfDocument(source_bytes) as pdf:
            source = pdf.as_pymupdf_document()
            selected = select_page_indices(page_indices, pdf.page_count)

            if split_into_individual:
                outputs = []
                for page_index in selected:
                    check_cancelled(cancel_token, "page copy", page_index=page_index)
                    outputs.append(self._build(source, [page_index]))
                logger.info(f"Split {document.id} into {len(outputs)} single-page PDFs")
                return outputs

            output = self._build(source, selected, cancel_token)
            logger.info(f"Extracted {len(selected)} pages of {document.id} into one PDF")
            return output

    def _build(
        self,
        source: fitz.Document,
        page_indices: Sequence[int],
        cancel_token: Optional[CancellationToken] = None,
    ) -> bytes:
        target = fitz.open()
        try:
            for page_index in page_indices:
                check_cancelled(cancel_token, "page copy", page_index=page_index)
                target.insert_pdf(source, from_page=page_index, to_page=page_index)
            return serialize_pdf(target, deflate=self._settings.deflate_output)
        finally:
            target.close()


def split(
    document: Document,
    repository: DocumentRepository,
    page_indices: Optional[Sequence[int]] = None,
    split_into_individual: bool = False,
    cancel_token: Optional[CancellationToken] = None,
) -> SplitResult:
    """Split ``document`` with default settings."""
    return PageSplitter(repository).split(document, page_indices, split_into_individual, cancel_token)
