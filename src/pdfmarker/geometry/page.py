from dataclasses import dataclass


@dataclass(frozen=True)
class PageGeometry:
    """Page size in PDF points."""
    width: float
    height: float
