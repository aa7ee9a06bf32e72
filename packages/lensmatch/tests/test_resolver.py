"""Tests for the end-to-end lens resolver."""

import pytest

from lensmatch.catalog import Catalog
from lensmatch.config import MatchConfig, ScoringWeights
from lensmatch.resolver import LensResolver
from lensmatch.types import LensProduct, ResolutionAudit, ResolveInput


class MockLLMProvider:
    """Mock LLM provider for testing."""

    def __init__(self, response: str = "none"):
        self.response = response
        self.calls: list[str] = []

    def query(self, prompt: str) -> str:
        self.calls.append(prompt)
        return self.response


class MemoryAuditSink:
    def __init__(self):
        self.records: list[ResolutionAudit] = []

    def record(self, audit: ResolutionAudit) -> None:
        self.records.append(audit)


class BrokenAuditSink:
    def record(self, audit: ResolutionAudit) -> None:
        raise OSError("disk full")


@pytest.fixture(scope="module")
def catalog() -> Catalog:
    return Catalog.load()


def test_high_confidence_short_circuit(catalog):
    provider = MockLLMProvider("Acuvue Oasys 1-Day")
    sink = MemoryAuditSink()
    resolver = LensResolver(catalog, llm_provider=provider, audit_sink=sink)

    result = resolver.resolve("Oasys Max 1-Day", has_cyl=False, has_add=False)

    assert result.final_lens_id == "V001"
    assert result.confidence == "high"
    assert result.ai_lens_id is None
    assert result.agreement is True
    assert result.audited is False
    assert provider.calls == []

    assert len(sink.records) == 1
    audit = sink.records[0]
    assert audit.hybrid_lens_id == "V001"
    assert audit.final_lens_id == "V001"
    assert audit.ai_lens_id is None
    assert audit.agreement is True


def test_medium_keeps_hybrid_without_ai(catalog):
    provider = MockLLMProvider("Acuvue Vita")
    resolver = LensResolver(catalog, llm_provider=provider)

    result = resolver.resolve("Acuvue Oasys")

    assert result.final_lens_id == "V006"
    assert result.confidence == "medium"
    assert result.hybrid_score == 48.0
    assert result.audited is True
    assert provider.calls == []


def test_low_confidence_rescued_by_ai(catalog):
    provider = MockLLMProvider("Acuvue Vita")
    sink = MemoryAuditSink()
    resolver = LensResolver(catalog, llm_provider=provider, audit_sink=sink)

    result = resolver.resolve("Acuvue")

    assert result.hybrid_lens_id is None
    assert result.hybrid_confidence == "low"
    assert result.ai_lens_id == "V012"
    assert result.final_lens_id == "V012"
    assert result.confidence == "medium"
    assert result.agreement is False
    assert result.audited is True
    assert len(provider.calls) == 1
    assert sink.records[0].ai_lens_id == "V012"
    assert sink.records[0].final_lens_id == "V012"


def test_low_confidence_without_provider(catalog):
    result = LensResolver(catalog).resolve("Acuvue")
    assert result.final_lens_id is None
    assert result.confidence == "low"
    assert result.ai_lens_id is None
    assert result.audited is True


def test_toric_oasys_max_selects_astigmatism_variant(catalog):
    result = LensResolver(catalog).resolve("Oasys Max Toric", has_cyl=True, has_add=False)

    # Oasys Max is a daily-only line, so the daily stage keeps V003
    assert result.trace.daily_intent is True
    assert "V003" in result.candidate_ids
    assert result.final_lens_id == "V003"
    assert result.confidence == "medium"
    assert result.hybrid_score == 36.0
    for _, ids in result.trace.stages[2:]:
        assert "V001" not in ids
    assert all(catalog.require(i).toric for i in result.candidate_ids)


def test_close_scores_go_to_fallback():
    catalog = Catalog([
        LensProduct("X1", "Acme", "Aqua", base_curves=(8.6,), diameter=14.2),
        LensProduct("X2", "Acme", "Aqua", base_curves=(8.4,), diameter=14.2),
    ])
    config = MatchConfig(scoring=ScoringWeights(brand_token=20.0, name_token=18.0, base_curve_bonus=2.0))
    provider = MockLLMProvider("none")
    resolver = LensResolver(catalog, config=config, llm_provider=provider)

    result = resolver.resolve("Acme Aqua", base_curve=8.6)

    assert result.hybrid_lens_id is None
    assert result.hybrid_confidence == "low"
    assert len(provider.calls) == 1
    assert result.final_lens_id is None
    assert result.confidence == "low"


def test_add_derived_from_text(catalog):
    result = LensResolver(catalog).resolve("Acuvue Oasys Multifocal ADD +2.00")
    assert result.add_state is not None
    assert result.add_state.has_add is True
    assert result.candidate_ids
    assert all(catalog.require(i).multifocal for i in result.candidate_ids)


def test_explicit_add_flag_wins(catalog):
    result = LensResolver(catalog).resolve("Acuvue Oasys +2.00", has_add=False)
    assert result.add_state is None
    assert all(not catalog.require(i).multifocal for i in result.candidate_ids)


def test_empty_text_rejected(catalog):
    with pytest.raises(ValueError):
        LensResolver(catalog).resolve("   ")


def test_audit_failure_does_not_fail_resolution(catalog):
    resolver = LensResolver(catalog, audit_sink=BrokenAuditSink())
    result = resolver.resolve("Oasys Max 1-Day")
    assert result.final_lens_id == "V001"


def test_resolve_input(catalog):
    result = LensResolver(catalog).resolve_input(ResolveInput(raw_text="Oasys Max 1-Day"))
    assert result.final_lens_id == "V001"
