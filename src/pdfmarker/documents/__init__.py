"""Documents, the repository interface and its in-memory implementation."""

from .model import Document, PageGeometry, RegionIssue, RegionEvent, RegionEventKind
from .repository import DocumentRepository, InMemoryDocumentRepository, revalidate_regions

__all__ = [
    "Document",
    "PageGeometry",
    "RegionIssue",
    "RegionEvent",
    "RegionEventKind",
    "DocumentRepository",
    "InMemoryDocumentRepository",
    "revalidate_regions",
]
