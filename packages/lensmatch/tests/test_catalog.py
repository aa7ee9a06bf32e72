"""Tests for the lens catalog and display helpers."""

import json

import pytest

from lensmatch.catalog import Catalog, display_name, pack_size
from lensmatch.types import LensProduct


def make_lens(lens_id: str, brand: str = "Acme", name: str = "Aqua", **kwargs) -> LensProduct:
    kwargs.setdefault("base_curves", (8.6,))
    return LensProduct(lens_id=lens_id, brand=brand, name=name, **kwargs)


class TestBundledCatalog:
    def test_loads_every_manufacturer(self):
        catalog = Catalog.load()
        prefixes = {lens.lens_id.rstrip("0123456789") for lens in catalog}
        assert prefixes == {"V", "A", "BL", "CV"}

    def test_lookup(self):
        catalog = Catalog.load()
        lens = catalog.require("V001")
        assert lens.label == "Acuvue Oasys Max 1-Day"
        assert "V001" in catalog
        assert catalog.get("NOPE") is None

    def test_require_unknown_raises(self):
        catalog = Catalog.load()
        with pytest.raises(KeyError):
            catalog.require("NOPE")

    def test_multifocal_lenses_have_add_options(self):
        catalog = Catalog.load()
        for lens in catalog:
            if lens.multifocal:
                assert catalog.add_options(lens.lens_id), lens.lens_id

    def test_add_options_empty_for_single_vision(self):
        catalog = Catalog.load()
        assert catalog.add_options("V001") == ()

    def test_color_options_by_label(self):
        catalog = Catalog.load()
        assert "Brilliant Blue" in catalog.color_options("A010")
        assert catalog.color_options("V014") == ("Natural Shine", "Accent Style", "Vivid Style")
        assert catalog.color_options("V001") == ()


class TestCatalogValidation:
    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError, match="Duplicate"):
            Catalog([make_lens("X1"), make_lens("X1", name="Other")])

    def test_missing_base_curve_rejected(self):
        with pytest.raises(ValueError, match="base curve"):
            Catalog([make_lens("X1", base_curves=())])

    def test_multifocal_without_add_options_rejected(self):
        with pytest.raises(ValueError, match="ADD"):
            Catalog([make_lens("X1", multifocal=True)])

    def test_load_from_directory(self, tmp_path):
        rows = [{"lens_id": "X1", "brand": "Acme", "name": "Aqua", "base_curves": [8.6], "diameter": 14.2}]
        (tmp_path / "lenses.json").write_text(json.dumps(rows))
        catalog = Catalog.load(tmp_path)
        assert len(catalog) == 1
        assert catalog.require("X1").diameter == 14.2
        assert catalog.color_options("X1") == ()

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Catalog.load(tmp_path)


def test_pack_size():
    assert pack_size("OASYS_24") == 24
    assert pack_size("MOIST_1DAY_90") == 90
    assert pack_size("ULTRA_TORIC_6") == 6
    assert pack_size("NOSIZE") is None


def test_display_name():
    lens = make_lens("V001", brand="Acuvue", name="Oasys Max 1-Day")
    assert display_name(lens) == "Acuvue Oasys Max 1-Day"
    assert display_name(lens, "OASYS_MAX_1DAY_90") == "Acuvue Oasys Max 1-Day (90-pack)"


def test_display_name_brand_repeats_name():
    lens = make_lens("A011", brand="Total30", name="Total30")
    assert display_name(lens, "TOTAL30_6") == "Total30 (6-pack)"
