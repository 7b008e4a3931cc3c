import json
from unittest.mock import patch

import fitz  # type: ignore[import]
from typer.testing import CliRunner

from pdfmarker.cli import app, parse_pages
from tests.helpers.pdf_factory import data_uri, make_encrypted_pdf, make_pdf, make_pdf_file, png_bytes

runner = CliRunner()


def write_regions(tmp_path, regions):
    path = tmp_path / "regions.json"
    path.write_text(json.dumps(regions), encoding="utf-8")
    return path


class TestCLIBasicFunctionality:
    def test_help_command_works(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "composite" in result.stdout
        assert "split" in result.stdout

    def test_split_help_lists_options(self):
        result = runner.invoke(app, ["split", "--help"])
        assert result.exit_code == 0
        assert "--pages" in result.stdout
        assert "--individual" in result.stdout

    def test_parse_pages(self):
        assert parse_pages("2, 0,2") == [2, 0, 2]
        assert parse_pages("") is None
        assert parse_pages(None) is None


class TestCompositeCommand:
    def test_composite_writes_signed_pdf(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 2, name="contract.pdf")
        regions_path = write_regions(tmp_path, [
            {"id": "sig", "pageIndex": 1, "x": 50, "y": 100, "width": 200, "height": 100,
             "type": "rectangle", "status": "done", "meta": {"imageSrc": data_uri(png_bytes())}},
            {"id": "todo", "pageIndex": 0, "x": 0, "y": 0, "width": 10, "height": 10,
             "type": "rectangle", "status": "pending"},
        ])
        out = tmp_path / "out"

        result = runner.invoke(app, ["composite", str(pdf_path), str(regions_path), "--out", str(out)])

        assert result.exit_code == 0
        assert "Composite complete" in result.stdout
        assert "1/2" in result.stdout
        output = out / "contract_signed.pdf"
        doc = fitz.open(output)
        try:
            assert doc.page_count == 2
            assert len(doc[1].get_images()) == 1
            assert len(doc[0].get_images()) == 0
        finally:
            doc.close()

    def test_unsupported_image_exits_with_error(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 1)
        regions_path = write_regions(tmp_path, [
            {"id": "gif", "pageIndex": 0, "x": 0, "y": 0, "width": 10, "height": 10,
             "status": "done", "meta": {"imageSrc": data_uri(b"GIF89a....", "image/gif")}},
        ])
        result = runner.invoke(app, ["composite", str(pdf_path), str(regions_path), "--out", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert not (tmp_path / "out" / "test_signed.pdf").exists()

    def test_invalid_threshold_exits_with_2(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 1)
        regions_path = write_regions(tmp_path, [])
        result = runner.invoke(app, ["composite", str(pdf_path), str(regions_path), "--threshold", "300"])
        assert result.exit_code == 2

    def test_threshold_defaults_to_environment(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 1)
        regions_path = write_regions(tmp_path, [])
        args = ["composite", str(pdf_path), str(regions_path), "--out", str(tmp_path / "out")]
        env = {"PDFMARKER_MATTE_THRESHOLD": "200"}

        with patch("pdfmarker.cli.DocumentCompositor") as compositor_cls:
            compositor_cls.return_value.composite.return_value = make_pdf(1)
            from_env = runner.invoke(app, args, env=env)
            from_env_settings = compositor_cls.call_args.kwargs["settings"]
            overridden = runner.invoke(app, args + ["--threshold", "180"], env=env)
            overridden_settings = compositor_cls.call_args.kwargs["settings"]

        assert from_env.exit_code == 0
        assert overridden.exit_code == 0
        assert from_env_settings.matte_threshold == 200
        assert overridden_settings.matte_threshold == 180

    def test_encrypted_pdf_exits_with_2(self, tmp_path):
        pdf_path = make_encrypted_pdf(tmp_path)
        regions_path = write_regions(tmp_path, [])
        result = runner.invoke(app, ["composite", str(pdf_path), str(regions_path), "--out", str(tmp_path / "out")])
        assert result.exit_code == 2


class TestSplitCommand:
    def test_individual_split(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 5, name="book.pdf")
        out = tmp_path / "out"

        result = runner.invoke(app, ["split", str(pdf_path), "--pages", "2,0,2", "--individual", "--out", str(out)])

        assert result.exit_code == 0
        names = sorted(p.name for p in out.iterdir())
        assert names == ["book_page_1.pdf", "book_page_3.pdf", "book_page_3_2.pdf"]

    def test_combined_split(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 5, name="book.pdf")
        out = tmp_path / "out"

        result = runner.invoke(app, ["split", str(pdf_path), "--pages", "4,1", "--out", str(out)])

        assert result.exit_code == 0
        doc = fitz.open(out / "book_pages.pdf")
        try:
            assert doc.page_count == 2
        finally:
            doc.close()

    def test_no_valid_pages_exits_with_2(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 5)
        result = runner.invoke(app, ["split", str(pdf_path), "--pages=-1,10", "--out", str(tmp_path / "out")])
        assert result.exit_code == 2

    def test_malformed_page_list_exits_with_2(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 5)
        result = runner.invoke(app, ["split", str(pdf_path), "--pages", "one,two"])
        assert result.exit_code == 2


class TestInfoCommand:
    def test_info_lists_pages(self, tmp_path):
        pdf_path = make_pdf_file(tmp_path, 3, widths=[300, 400, 500])
        result = runner.invoke(app, ["info", str(pdf_path)])
        assert result.exit_code == 0
        assert "3 pages" in result.stdout
        assert "400.00 x 842.00" in result.stdout
