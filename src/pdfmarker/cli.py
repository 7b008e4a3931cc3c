from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from .config import Settings
from .documents.model import Document
from .documents.repository import InMemoryDocumentRepository, revalidate_regions
from .errors import InvalidArgumentError, PdfMarkerError
from .logging import get_logger
from .output.writer import write_composite, write_split
from .pdf.compositor import DocumentCompositor
from .pdf.ingestion import EncryptedPdfError, PdfDocument
from .pdf.splitter import PageSplitter, select_page_indices
from .regions.serialization import load_regions

app = typer.Typer(help="pdfmarker – composite region images into PDFs and split pages", no_args_is_help=True)


def safe_echo(message: str) -> None:
    """Echo message, replacing symbols the console cannot encode."""
    try:
        typer.echo(message)
    except UnicodeEncodeError:
        typer.echo(message.replace("✅", "[OK]").replace("📄", "[PDF]").replace("📁", "[DIR]"))


def parse_pages(pages: Optional[str]) -> Optional[List[int]]:
    """Parse a comma-separated, 0-based page list such as ``2,0,2``."""
    if pages is None or not pages.strip():
        return None
    try:
        return [int(part) for part in pages.split(",") if part.strip()]
    except ValueError as exc:
        raise InvalidArgumentError(f"Invalid page list: {pages!r}") from exc


def _fail(logger, exc: Exception) -> NoReturn:
    logger.error(str(exc))
    code = 2 if isinstance(exc, (EncryptedPdfError, InvalidArgumentError)) else 1
    raise typer.Exit(code=code) from exc


@app.command()
def composite(
    pdf_path: Path = typer.Argument(..., exists=True, readable=True, help="Source PDF"),
    regions_json: Path = typer.Argument(..., exists=True, readable=True, help="Regions exported as JSON"),
    out: Path = typer.Option(Path("output"), "--out", "-o", help="Output directory"),
    remove_background: bool = typer.Option(False, "--remove-background/--keep-background", help="Make near-white PNG pixels transparent"),
    threshold: Optional[int] = typer.Option(None, help="Near-white threshold for background removal (0-255); defaults to PDFMARKER_MATTE_THRESHOLD or 240"),
) -> None:
    """Embed the images of all done regions into the PDF."""
    logger = get_logger(__name__)

    try:
        settings = Settings.from_env()
        if threshold is not None:
            settings.matte_threshold = threshold
        settings.validate()

        regions = load_regions(regions_json)
        with PdfDocument(pdf_path) as pdf:
            document = Document(
                id=pdf_path.stem,
                name=pdf_path.name,
                source_locator=pdf_path,
                page_count=pdf.page_count,
                pages=tuple(pdf.page_geometries()),
                regions=tuple(regions),
            )
        for issue in revalidate_regions(document):
            logger.warning(f"Region {issue.region_id}: {issue.message}")

        repository = InMemoryDocumentRepository(settings)
        repository.add_document(document)
        data = DocumentCompositor(repository, settings=settings).composite(document, remove_background)
        path = write_composite(data, out, pdf_path.stem)
    except PdfMarkerError as exc:
        _fail(logger, exc)

    embedded = sum(1 for r in regions if r.is_ready_to_composite())
    safe_echo("✅ Composite complete!")
    safe_echo(f"📄 Regions embedded: {embedded}/{len(regions)}")
    safe_echo(f"📁 Output: {path}")


@app.command()
def split(
    pdf_path: Path = typer.Argument(..., exists=True, readable=True, help="Source PDF"),
    pages: Optional[str] = typer.Option(None, "--pages", "-p", help="Comma-separated 0-based pages, e.g. 2,0,2 (default: all)"),
    individual: bool = typer.Option(False, "--individual/--combined", help="Write one PDF per selected page"),
    out: Path = typer.Option(Path("output"), "--out", "-o", help="Output directory"),
) -> None:
    """Extract pages into one PDF or into single-page PDFs."""
    logger = get_logger(__name__)

    try:
        settings = Settings.from_env()
        page_indices = parse_pages(pages)
        with PdfDocument(pdf_path) as pdf:
            page_count = pdf.page_count
        document = Document(id=pdf_path.stem, name=pdf_path.name, source_locator=pdf_path, page_count=page_count)

        repository = InMemoryDocumentRepository(settings)
        repository.add_document(document)
        selected = select_page_indices(page_indices, page_count)
        result = PageSplitter(repository, settings).split(document, page_indices, individual)
        paths = write_split(result, out, pdf_path.stem, selected)
    except PdfMarkerError as exc:
        _fail(logger, exc)

    safe_echo("✅ Split complete!")
    safe_echo(f"📄 Pages: {len(selected)} of {page_count}")
    safe_echo(f"📁 Files written: {len(paths)}")
    for path in paths:
        safe_echo(f"   {path}")


@app.command()
def info(
    pdf_path: Path = typer.Argument(..., exists=True, readable=True, help="PDF to inspect"),
) -> None:
    """Show page count and page sizes in PDF points."""
    logger = get_logger(__name__)

    try:
        with PdfDocument(pdf_path) as pdf:
            geometries = pdf.page_geometries()
    except PdfMarkerError as exc:
        _fail(logger, exc)

    safe_echo(f"📄 {pdf_path.name}: {len(geometries)} pages")
    for index, geometry in enumerate(geometries):
        safe_echo(f"   page {index}: {geometry.width:.2f} x {geometry.height:.2f} pt")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
