"""Tests for the structural filter chain."""

from lensmatch.catalog import Catalog
from lensmatch.filters import (
    filter_daily,
    filter_manufacturer,
    filter_multifocal,
    filter_toric,
    is_daily,
    run_filter_chain,
)
from lensmatch.types import LensProduct, ResolveInput


def make_lens(lens_id: str, name: str, **kwargs) -> LensProduct:
    return LensProduct(lens_id=lens_id, brand="Acuvue", name=name, base_curves=(8.5,), **kwargs)


def test_manufacturer_prefix():
    lenses = [make_lens("V001", "Oasys"), make_lens("A001", "Total1")]
    assert [lens.lens_id for lens in filter_manufacturer(lenses, "V")] == ["V001"]
    assert filter_manufacturer(lenses, None) == lenses


def test_toric_is_exact_partition():
    lenses = [make_lens("V1", "Oasys"), make_lens("V2", "Oasys for Astigmatism", toric=True)]
    assert [lens.lens_id for lens in filter_toric(lenses, True)] == ["V2"]
    assert [lens.lens_id for lens in filter_toric(lenses, False)] == ["V1"]


def test_multifocal_is_exact_partition():
    lenses = [
        make_lens("V1", "Oasys"),
        make_lens("V2", "Oasys Multifocal", multifocal=True, add_options=("Low",)),
    ]
    assert [lens.lens_id for lens in filter_multifocal(lenses, True)] == ["V2"]
    assert [lens.lens_id for lens in filter_multifocal(lenses, False)] == ["V1"]


def test_is_daily_uses_label_wording():
    assert is_daily(make_lens("V1", "Oasys 1-Day"))
    assert not is_daily(make_lens("V2", "Oasys"))


def test_daily_filter_keeps_or_drops_daily():
    lenses = [make_lens("V1", "Oasys 1-Day"), make_lens("V2", "Oasys")]
    assert [lens.lens_id for lens in filter_daily(lenses, True)] == ["V1"]
    assert [lens.lens_id for lens in filter_daily(lenses, False)] == ["V2"]


def test_daily_filter_never_empties():
    lenses = [make_lens("V1", "Oasys"), make_lens("V2", "Vita")]
    assert filter_daily(lenses, True) == lenses
    assert filter_daily([], True) == []


class TestFilterChain:
    def test_stages_recorded_in_order(self):
        catalog = Catalog.load()
        _, trace = run_filter_chain(catalog, ResolveInput(raw_text="Oasys Max 1-Day"))
        assert [stage for stage, _ in trace.stages] == [
            "catalog", "manufacturer", "toric", "multifocal", "daily",
        ]
        assert trace.manufacturer == "V"
        assert trace.daily_intent is True

    def test_each_stage_is_subset_of_previous(self):
        catalog = Catalog.load()
        for text, cyl, add in [
            ("Oasys Max 1-Day", False, False),
            ("Biofinity Toric", True, False),
            ("Total30 Multifocal", False, True),
            ("something unknown", False, False),
        ]:
            _, trace = run_filter_chain(catalog, ResolveInput(raw_text=text, has_cyl=cyl, has_add=add))
            for (_, before), (_, after) in zip(trace.stages, trace.stages[1:]):
                assert set(after) <= set(before)

    def test_daily_oasys_candidates(self):
        catalog = Catalog.load()
        candidates, _ = run_filter_chain(catalog, ResolveInput(raw_text="Oasys Max 1-Day"))
        assert [lens.lens_id for lens in candidates] == ["V001", "V004", "V009", "V014"]

    def test_toric_request_excludes_non_toric(self):
        catalog = Catalog.load()
        candidates, _ = run_filter_chain(
            catalog, ResolveInput(raw_text="Biofinity Toric", has_cyl=True)
        )
        assert candidates
        assert all(lens.toric for lens in candidates)
        assert all(lens.lens_id.startswith("CV") for lens in candidates)

    def test_no_manufacturer_keeps_all_brands(self):
        catalog = Catalog.load()
        candidates, trace = run_filter_chain(catalog, ResolveInput(raw_text="contact lens"))
        assert trace.manufacturer is None
        assert len({lens.lens_id.rstrip("0123456789") for lens in candidates}) > 1
