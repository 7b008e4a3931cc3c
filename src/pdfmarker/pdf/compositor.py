"""
Compositing of region images onto the pages of a PDF.

For every done region with an attached image, in insertion order, the
image is resolved, classified, optionally matted, fitted into the region
and drawn on its page. The result is a new serialized document; the
source document and its regions are never modified.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional

from ..cancellation import CancellationToken, check_cancelled
from ..config import Settings
from ..documents.model import Document
from ..documents.repository import DocumentRepository
from ..errors import EncodeFailureError, NotFoundError, PdfMarkerError
from ..geometry.coordinate import to_page_space
from ..geometry.fit import ImageFit, center_offset, compute_image_fit
from ..imaging.codec import ImageCodec, PyMuPdfImageCodec
from ..imaging.matte import remove_near_white
from ..imaging.sniff import ImageFormat, require_supported
from ..imaging.sources import fetch_bytes
from ..logging import get_logger
from ..regions.model import Region
from .ingestion import PdfDocument, serialize_pdf

logger = get_logger(__name__)

ImageResolver = Callable[[str], bytes]


class DocumentCompositor:
    """Embeds region images into a copy of a document's PDF."""

    def __init__(
        self,
        repository: DocumentRepository,
        codec: Optional[ImageCodec] = None,
        settings: Optional[Settings] = None,
        image_resolver: Optional[ImageResolver] = None,
    ) -> None:
        self._repository = repository
        self._codec = codec or PyMuPdfImageCodec()
        self._settings = settings or Settings()
        self._resolve_image = image_resolver or self._fetch_image

    def composite_by_id(
        self,
        document_id: str,
        remove_background: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bytes:
        """Look up a document in the repository and composite it."""
        return self.composite(self._repository.get_document(document_id), remove_background, cancel_token)

    def composite(
        self,
        document: Document,
        remove_background: bool = False,
        cancel_token: Optional[CancellationToken] = None,
    ) -> bytes:
        """
        Composite every qualifying region image into the document.

        Args:
            document: Document snapshot; its regions are read once, here
            remove_background: Matte near-white pixels out of PNG images
            cancel_token: Checked before every fetch and embed step

        Returns:
            Serialized PDF bytes

        Raises:
            UnsupportedFormatError: If a region image is neither PNG nor JPEG
            FetchFailureError: If the document or an image cannot be resolved
            NotFoundError: If a region targets a page the document lacks
            CancelledError: If ``cancel_token`` is cancelled
        """
        regions = tuple(document.regions)
        logger.info(
            f"Compositing document {document.id} "
            f"({len(regions)} regions, remove_background={remove_background})"
        )

        check_cancelled(cancel_token, "document fetch")
        source = self._repository.get_document_bytes(document.source_locator)

        embedded = 0
        with PdfDocument(source) as pdf:
            target = pdf.as_pymupdf_document()
            for region in regions:
                if not region.is_ready_to_composite():
                    logger.debug(f"Skipping region {region.id} (status={region.status.value}, image={region.has_image()})")
                    continue
                try:
                    self._embed_region(pdf, region, remove_background, cancel_token)
                except PdfMarkerError as exc:
                    if exc.region_id is None:
                        exc.region_id = region.id
                    if exc.page_index is None:
                        exc.page_index = region.page_index
                    raise
                embedded += 1

            check_cancelled(cancel_token, "serialization")
            output = serialize_pdf(target, deflate=self._settings.deflate_output)

        logger.info(f"Composited {embedded} region image(s) into {document.id} ({len(output)} bytes)")
        return output

    def _embed_region(
        self,
        pdf: PdfDocument,
        region: Region,
        remove_background: bool,
        cancel_token: Optional[CancellationToken],
    ) -> None:
        if not 0 <= region.page_index < pdf.page_count:
            raise NotFoundError(
                f"Region targets page {region.page_index} but document has {pdf.page_count} pages",
                region_id=region.id,
                page_index=region.page_index,
            )

        check_cancelled(cancel_token, "image fetch", region_id=region.id, page_index=region.page_index)
        data = self._resolve_image(region.image.src)

        fmt = require_supported(data, region.id)
        if fmt is ImageFormat.PNG and remove_background:
            data = self._matte_png(data, region)

        check_cancelled(cancel_token, "page embed", region_id=region.id, page_index=region.page_index)
        target = pdf.as_pymupdf_document()
        image = self._codec.embed_asset(target, data, fmt)

        fit = compute_image_fit(image.natural_width, image.natural_height, region.width, region.height)
        if fit.width <= 0 or fit.height <= 0:
            logger.warning(
                f"Region {region.id}: {image.natural_width}x{image.natural_height} image fits as "
                f"{fit.width}x{fit.height}, widening the empty axis to one point"
            )
            fit = _drawable_fit(fit, region)
        page_height = pdf.page_geometry(region.page_index).height
        x, y = to_page_space(region.x + fit.offset_x, region.y + fit.offset_y, fit.height, page_height)
        self._codec.draw_image(target, region.page_index, image, x, y, fit.width, fit.height)

        logger.debug(
            f"Embedded region {region.id} on page {region.page_index}: "
            f"x={x:.2f} y={y:.2f} {fit.width}x{fit.height} ({fmt.value})"
        )

    def _matte_png(self, data: bytes, region: Region) -> bytes:
        decoded = self._codec.decode_to_rgba(data)
        pixels = remove_near_white(
            decoded.pixels, decoded.width, decoded.height, self._settings.matte_threshold
        )
        try:
            return self._codec.encode_png(decoded.width, decoded.height, pixels)
        except EncodeFailureError as exc:
            logger.warning(f"Background removal failed for region {region.id}, using original PNG: {exc}")
            return data

    def _fetch_image(self, src: str) -> bytes:
        return fetch_bytes(src, timeout=self._settings.fetch_timeout)


def _drawable_fit(fit: ImageFit, region: Region) -> ImageFit:
    """Give an axis that rounded to zero one unit, capped by the region box, and re-center."""
    width = fit.width if fit.width > 0 else min(1.0, region.width)
    height = fit.height if fit.height > 0 else min(1.0, region.height)
    offset = center_offset(region.width, region.height, width, height)
    return replace(fit, width=width, height=height, offset_x=offset.offset_x, offset_y=offset.offset_y)


def composite(
    document: Document,
    repository: DocumentRepository,
    remove_background: bool = False,
    cancel_token: Optional[CancellationToken] = None,
    settings: Optional[Settings] = None,
) -> bytes:
    """Composite ``document`` with the default PyMuPDF/Pillow codec."""
    return DocumentCompositor(repository, settings=settings).composite(document, remove_background, cancel_token)
