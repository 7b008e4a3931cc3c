"""Writing composite and split artifacts to an output directory."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from typing import List, Sequence

from ..errors import InvalidArgumentError
from ..logging import get_logger
from ..pdf.splitter import SplitResult

logger = get_logger(__name__)


def write_composite(data: bytes, output_dir: Path, stem: str) -> Path:
    """Write composited PDF bytes as ``<stem>_signed.pdf``."""
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"{stem}_signed.pdf"
    path.write_bytes(data)
    logger.info(f"Wrote {path} ({len(data)} bytes)")
    return path


def split_file_names(stem: str, page_indices: Sequence[int]) -> List[str]:
    """
    File names for single-page outputs, 1-based.

    A page selected more than once gets a ``_<k>`` suffix from its second
    occurrence on: pages [2, 0, 2] give page_3, page_1, page_3_2.
    """
    seen: Counter = Counter()
    names = []
    for page_index in page_indices:
        seen[page_index] += 1
        suffix = f"_{seen[page_index]}" if seen[page_index] > 1 else ""
        names.append(f"{stem}_page_{page_index + 1}{suffix}.pdf")
    return names


def write_split(
    result: SplitResult,
    output_dir: Path,
    stem: str,
    page_indices: Sequence[int],
) -> List[Path]:
    """Write the output of a split: one combined file or one file per page."""
    output_dir.mkdir(parents=True, exist_ok=True)

    if isinstance(result, (bytes, bytearray)):
        path = output_dir / f"{stem}_pages.pdf"
        path.write_bytes(result)
        logger.info(f"Wrote {path} with {len(page_indices)} pages")
        return [path]

    if len(result) != len(page_indices):
        raise InvalidArgumentError(
            f"Got {len(result)} split documents for {len(page_indices)} selected pages"
        )
    paths = []
    for name, data in zip(split_file_names(stem, page_indices), result):
        path = output_dir / name
        path.write_bytes(data)
        paths.append(path)
    logger.info(f"Wrote {len(paths)} single-page PDFs to {output_dir}")
    return paths
