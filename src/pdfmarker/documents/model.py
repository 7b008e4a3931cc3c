"""
Document model consumed by the compositor and the page splitter.

Documents are immutable snapshots; the repository swaps in a new
snapshot on every mutation so a reader never sees a half-applied edit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple, Union

from ..geometry.page import PageGeometry
from ..regions.model import Region

SourceLocator = Union[str, Path, bytes]


@dataclass(frozen=True)
class Document:
    id: str
    name: str
    source_locator: SourceLocator
    page_count: Optional[int] = None
    pages: Tuple[PageGeometry, ...] = ()
    regions: Tuple[Region, ...] = field(default_factory=tuple)

    def find_region(self, region_id: str) -> Optional[Region]:
        for region in self.regions:
            if region.id == region_id:
                return region
        return None

    def page_geometry(self, page_index: int) -> Optional[PageGeometry]:
        if 0 <= page_index < len(self.pages):
            return self.pages[page_index]
        return None


@dataclass(frozen=True)
class RegionIssue:
    """A region that no longer satisfies the document's invariants."""
    region_id: str
    page_index: int
    message: str


class RegionEventKind(str, Enum):
    CREATED = "regionCreated"
    UPDATED = "regionUpdated"
    DELETED = "regionDeleted"


@dataclass(frozen=True)
class RegionEvent:
    kind: RegionEventKind
    document_id: str
    region: Region
