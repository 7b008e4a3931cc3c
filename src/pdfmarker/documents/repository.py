"""
Document repository: the host-side store of documents and their regions.

``DocumentRepository`` is the narrow read interface the compositor and
splitter consume. ``InMemoryDocumentRepository`` implements it and adds
the region mutations a host needs, serialized per document.
"""

from __future__ import annotations

import io
import itertools
import threading
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

import requests
from PIL import Image, UnidentifiedImageError

from ..config import Settings
from ..errors import DecodeFailureError, InvalidArgumentError, NotFoundError, PdfMarkerError
from ..geometry.fit import compute_image_fit
from ..imaging.sources import fetch_bytes
from ..logging import get_logger
from ..pdf.ingestion import PdfDocument
from ..regions import model as region_model
from ..regions.model import ImageAttachment, Region, RegionStatus, refit_image
from .model import (
    Document,
    PageGeometry,
    RegionEvent,
    RegionEventKind,
    RegionIssue,
    SourceLocator,
)

logger = get_logger(__name__)

RegionListener = Callable[[RegionEvent], None]


class DocumentRepository(Protocol):
    def get_document(self, document_id: str) -> Document: ...

    def get_document_bytes(self, locator: SourceLocator) -> bytes: ...

    def get_page_geometry(self, locator: SourceLocator, page_index: int) -> PageGeometry: ...

    def get_page_count(self, locator: SourceLocator) -> int: ...


class InMemoryDocumentRepository:
    """
    Thread-safe in-memory document store.

    Each document has its own lock: mutations of one document are
    serialized while different documents proceed independently. Reads
    return immutable snapshots and never block on fetches.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self._settings = settings or Settings()
        self._session = session
        self._documents: Dict[str, Document] = {}
        self._locks: Dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        self._listeners: List[RegionListener] = []
        self._active_document_id: Optional[str] = None
        self._active_pages: Dict[str, int] = {}
        self._fit_tickets = itertools.count(1)
        self._applied_fits: Dict[Tuple[str, str], int] = {}

    # -- DocumentRepository -------------------------------------------------

    def get_document(self, document_id: str) -> Document:
        document = self._documents.get(document_id)
        if document is None:
            raise NotFoundError(f"Document {document_id!r} not found")
        return document

    def get_document_bytes(self, locator: SourceLocator) -> bytes:
        return fetch_bytes(locator, timeout=self._settings.fetch_timeout, session=self._session)

    def get_page_geometry(self, locator: SourceLocator, page_index: int) -> PageGeometry:
        with PdfDocument(self.get_document_bytes(locator)) as pdf:
            if not 0 <= page_index < pdf.page_count:
                raise NotFoundError(
                    f"Page {page_index} not in document with {pdf.page_count} pages",
                    page_index=page_index,
                )
            return pdf.page_geometry(page_index)

    def get_page_count(self, locator: SourceLocator) -> int:
        with PdfDocument(self.get_document_bytes(locator)) as pdf:
            return pdf.page_count

    # -- documents -----------------------------------------------------------

    def add_document(
        self,
        documents: Union[Document, Sequence[Document]],
        detect_page_count: bool = False,
    ) -> List[RegionIssue]:
        """
        Register one or more documents.

        The first registered document becomes active if none is. With
        ``detect_page_count`` the page count and geometry are read from
        each source; a failed detection is logged and leaves the count
        unknown. Returns any region issues found by that detection.
        """
        batch = [documents] if isinstance(documents, Document) else list(documents)
        with self._registry_lock:
            for document in batch:
                self._documents[document.id] = document
                self._locks.setdefault(document.id, threading.RLock())
                self._active_pages.setdefault(document.id, 0)
                if self._active_document_id is None:
                    self._active_document_id = document.id
        logger.debug(f"Registered {len(batch)} document(s)")

        issues: List[RegionIssue] = []
        if detect_page_count:
            for document in batch:
                try:
                    issues.extend(self.detect_page_count(document.id))
                except PdfMarkerError as exc:
                    logger.error(f"Failed to get page count for {document.id}: {exc}")
        return issues

    def detect_page_count(self, document_id: str) -> List[RegionIssue]:
        """Read page count and geometry from the source and revalidate regions."""
        document = self.get_document(document_id)
        with PdfDocument(self.get_document_bytes(document.source_locator)) as pdf:
            page_count = pdf.page_count
            pages = pdf.page_geometries()
        logger.info(f"Detected {page_count} pages for {document_id}")
        return self.update_page_count(document_id, page_count, pages)

    def update_page_count(
        self,
        document_id: str,
        page_count: int,
        pages: Optional[Sequence[PageGeometry]] = None,
    ) -> List[RegionIssue]:
        """
        Set a document's page count and revalidate its regions.

        Regions on pages past the new count are kept and reported.
        """
        if page_count < 0:
            raise InvalidArgumentError(f"page_count must be non-negative, got {page_count}")
        with self._lock_for(document_id):
            document = self.get_document(document_id)
            changes = {"page_count": page_count}
            if pages is not None:
                changes["pages"] = tuple(pages)
            document = replace(document, **changes)
            self._documents[document_id] = document
        issues = revalidate_regions(document)
        for issue in issues:
            logger.warning(f"Document {document_id}: region {issue.region_id}: {issue.message}")
        return issues

    def remove_document(self, document_id: str) -> None:
        with self._registry_lock:
            if self._documents.pop(document_id, None) is None:
                raise NotFoundError(f"Document {document_id!r} not found")
            self._locks.pop(document_id, None)
            self._active_pages.pop(document_id, None)
            for key in [k for k in self._applied_fits if k[0] == document_id]:
                del self._applied_fits[key]
            if self._active_document_id == document_id:
                self._active_document_id = None

    def documents(self) -> List[Document]:
        return list(self._documents.values())

    # -- navigation ----------------------------------------------------------

    @property
    def active_document_id(self) -> Optional[str]:
        return self._active_document_id

    def switch_document(self, document_id: str) -> None:
        self.get_document(document_id)
        self._active_document_id = document_id

    def set_active_page(self, document_id: str, page_index: int) -> int:
        """Set the current page, clamped to the known page range. Returns the stored index."""
        document = self.get_document(document_id)
        clamped = max(0, page_index)
        if document.page_count is not None:
            clamped = max(0, min(page_index, document.page_count - 1))
        self._active_pages[document_id] = clamped
        return clamped

    def active_page(self, document_id: str) -> int:
        self.get_document(document_id)
        return self._active_pages.get(document_id, 0)

    # -- regions -------------------------------------------------------------

    def subscribe(self, listener: RegionListener) -> Callable[[], None]:
        """Register a region event listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def add_region(self, document_id: str, region: Region) -> Region:
        """
        Append a region to a document.

        Raises:
            InvalidArgumentError: If the region is invalid, its id is taken,
                or its page is past a known page count
        """
        _require_valid(region)
        with self._lock_for(document_id):
            document = self.get_document(document_id)
            if document.find_region(region.id) is not None:
                raise InvalidArgumentError("Duplicate region id", region_id=region.id)
            _require_known_page(document, region)
            self._documents[document_id] = replace(document, regions=document.regions + (region,))
        self._emit(RegionEventKind.CREATED, document_id, region)
        return region

    def update_region(self, document_id: str, region_id: str, partial: Dict) -> Optional[Region]:
        """
        Shallow-merge ``partial`` into a region. Returns None if the region is absent.

        A cached image fit is recomputed when the merge changes the box.

        Raises:
            InvalidArgumentError: If the merged region is invalid or its page
                is past a known page count; the stored region is left unchanged
        """
        with self._lock_for(document_id):
            document = self.get_document(document_id)
            regions = region_model.update_region(document.regions, region_id, partial)
            if regions is document.regions:
                return None
            merged = next(r for r in regions if r.id == region_id)
            _require_valid(merged)
            _require_known_page(document, merged)
            updated = refit_image(merged)
            self._documents[document_id] = replace(
                document, regions=tuple(updated if r.id == region_id else r for r in regions)
            )
        self._emit(RegionEventKind.UPDATED, document_id, updated)
        return updated

    def delete_region(self, document_id: str, region_id: str) -> Optional[Region]:
        """Remove a region. Returns the removed region, or None if absent."""
        with self._lock_for(document_id):
            document = self.get_document(document_id)
            removed = document.find_region(region_id)
            if removed is None:
                return None
            regions = region_model.delete_region(document.regions, region_id)
            self._documents[document_id] = replace(document, regions=tuple(regions))
            self._applied_fits.pop((document_id, region_id), None)
        self._emit(RegionEventKind.DELETED, document_id, removed)
        return removed

    def replace_regions(self, document_id: str, regions: Iterable[Region]) -> List[RegionIssue]:
        """Replace a document's whole region collection; returns invariant issues."""
        regions = tuple(regions)
        ids = [r.id for r in regions]
        if len(set(ids)) != len(ids):
            raise InvalidArgumentError("Region ids must be unique")
        with self._lock_for(document_id):
            document = replace(self.get_document(document_id), regions=regions)
            self._documents[document_id] = document
        for region in regions:
            self._emit(RegionEventKind.UPDATED, document_id, region)
        return revalidate_regions(document)

    def attach_image(self, document_id: str, region_id: str, image_src: str) -> Region:
        """
        Attach an image to a region and mark it done.

        The image is resolved outside the document lock. Requests for the
        same region apply in submission order: a request that finishes
        after a later one has been applied is discarded.

        Raises:
            NotFoundError: If the document or region does not exist
            FetchFailureError: If the image cannot be resolved
            DecodeFailureError: If the image cannot be read
        """
        with self._lock_for(document_id):
            if self.get_document(document_id).find_region(region_id) is None:
                raise NotFoundError("Region not found", region_id=region_id)
            ticket = next(self._fit_tickets)

        try:
            data = fetch_bytes(image_src, timeout=self._settings.fetch_timeout, session=self._session)
            natural_width, natural_height = _natural_size(data, region_id)
        except PdfMarkerError as exc:
            logger.error(f"Attaching image to region {region_id} failed: {exc}")
            raise

        key = (document_id, region_id)
        with self._lock_for(document_id):
            if self._applied_fits.get(key, 0) > ticket:
                logger.debug(f"Region {region_id}: discarding superseded fit request {ticket}")
                current = self.get_document(document_id).find_region(region_id)
                if current is None:
                    raise NotFoundError("Region not found", region_id=region_id)
                return current
            document = self.get_document(document_id)
            region = document.find_region(region_id)
            if region is None:
                raise NotFoundError("Region deleted while attaching image", region_id=region_id)
            fit = compute_image_fit(natural_width, natural_height, region.width, region.height)
            updated = replace(
                region,
                status=RegionStatus.DONE,
                image=ImageAttachment(src=image_src, fit=fit),
            )
            regions = tuple(updated if r.id == region_id else r for r in document.regions)
            self._documents[document_id] = replace(document, regions=regions)
            self._applied_fits[key] = ticket
        self._emit(RegionEventKind.UPDATED, document_id, updated)
        return updated

    # -- internals -----------------------------------------------------------

    def _lock_for(self, document_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(document_id)
        if lock is None:
            raise NotFoundError(f"Document {document_id!r} not found")
        return lock

    def _emit(self, kind: RegionEventKind, document_id: str, region: Region) -> None:
        event = RegionEvent(kind=kind, document_id=document_id, region=region)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as exc:
                logger.warning(f"Region listener failed on {kind.value} for {region.id}: {exc}")


def revalidate_regions(document: Document) -> List[RegionIssue]:
    """Report every region that violates the document's invariants."""
    issues: List[RegionIssue] = []
    for region in document.regions:
        error = region_model.validate_region(region)
        if error is None and document.page_count is not None and region.page_index >= document.page_count:
            error = f"Page index {region.page_index} is past page count {document.page_count}"
        if error:
            issues.append(RegionIssue(region_id=region.id, page_index=region.page_index, message=error))
    return issues


def _natural_size(data: bytes, region_id: str) -> Tuple[int, int]:
    try:
        with Image.open(io.BytesIO(data)) as img:
            return img.size
    except (UnidentifiedImageError, OSError) as exc:
        raise DecodeFailureError(f"Failed to read image: {exc}", region_id=region_id) from exc


def _require_valid(region: Region) -> None:
    error = region_model.validate_region(region)
    if error:
        raise InvalidArgumentError(error, region_id=region.id or None)


def _require_known_page(document: Document, region: Region) -> None:
    if document.page_count is not None and region.page_index >= document.page_count:
        raise InvalidArgumentError(
            f"Page index must be less than page count {document.page_count}",
            region_id=region.id,
            page_index=region.page_index,
        )
