import json

import pytest

from pdfmarker.errors import InvalidArgumentError
from pdfmarker.geometry.fit import compute_image_fit
from pdfmarker.regions.model import ImageAttachment, Region, RegionStatus, RegionType
from pdfmarker.regions.serialization import (
    load_regions,
    region_from_dict,
    region_to_dict,
    write_regions_json,
)


def signed_region():
    return Region(
        id="sig-1",
        page_index=2,
        x=50,
        y=600,
        width=200,
        height=80,
        type=RegionType.RECTANGLE,
        status=RegionStatus.DONE,
        render_scale=1.5,
        image=ImageAttachment(src="data:image/png;base64,AAAA", fit=compute_image_fit(100, 50, 200, 80)),
    )


class TestRegionDict:
    def test_uses_camel_case_keys(self):
        data = region_to_dict(signed_region())
        assert data["pageIndex"] == 2
        assert data["status"] == "done"
        assert data["scale"] == 1.5
        assert data["meta"]["imageSrc"].startswith("data:image/png")
        assert data["meta"]["imageFit"]["offsetY"] == 0
        assert data["meta"]["imageFit"]["imgW"] == 100

    def test_optional_fields_are_omitted(self):
        data = region_to_dict(Region(id="r", page_index=0, x=0, y=0))
        assert "meta" not in data
        assert "content" not in data
        assert "rotation" not in data

    def test_restores_region(self):
        region = signed_region()
        assert region_from_dict(region_to_dict(region)) == region

    def test_accepts_ui_export_without_fit(self):
        region = region_from_dict({
            "id": "a", "pageIndex": 0, "x": 1, "y": 2, "width": 3, "height": 4,
            "type": "highlight", "status": "active", "meta": {"imageSrc": "https://x/y.png"},
        })
        assert region.type is RegionType.HIGHLIGHT
        assert region.image.src == "https://x/y.png"
        assert region.image.fit is None

    def test_missing_key_is_rejected(self):
        with pytest.raises(InvalidArgumentError, match="pageIndex"):
            region_from_dict({"id": "a", "x": 0, "y": 0})

    def test_unknown_status_is_rejected(self):
        with pytest.raises(InvalidArgumentError):
            region_from_dict({"id": "a", "pageIndex": 0, "x": 0, "y": 0, "status": "finished"})


class TestRegionFiles:
    def test_write_then_load(self, tmp_path):
        path = write_regions_json([signed_region()], tmp_path / "regions.json")
        assert load_regions(path) == [signed_region()]

    def test_load_wrapped_object(self, tmp_path):
        path = tmp_path / "regions.json"
        path.write_text(json.dumps({"regions": [region_to_dict(signed_region())]}), encoding="utf-8")
        assert len(load_regions(path)) == 1

    def test_invalid_json_is_rejected(self, tmp_path):
        path = tmp_path / "regions.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InvalidArgumentError, match="Invalid regions JSON"):
            load_regions(path)

    def test_non_list_is_rejected(self, tmp_path):
        path = tmp_path / "regions.json"
        path.write_text('"nope"', encoding="utf-8")
        with pytest.raises(InvalidArgumentError, match="Expected a list"):
            load_regions(path)
