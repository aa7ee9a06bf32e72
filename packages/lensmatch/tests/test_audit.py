"""Tests for the JSONL audit trail."""

from lensmatch.audit import JsonlAuditSink, summarize
from lensmatch.catalog import Catalog
from lensmatch.resolver import LensResolver
from lensmatch.types import ResolutionAudit


def make_audit(hybrid=None, ai=None, final=None, agreement=False) -> ResolutionAudit:
    return ResolutionAudit(
        raw_text="text",
        hybrid_lens_id=hybrid,
        ai_lens_id=ai,
        final_lens_id=final,
        agreement=agreement,
    )


def test_append_and_read(tmp_path):
    sink = JsonlAuditSink(tmp_path / "audits" / "resolver.jsonl")
    first = make_audit(hybrid="V001", final="V001", agreement=True)
    second = make_audit(ai="V012", final="V012")
    sink.record(first)
    sink.record(second)

    assert sink.read_all() == [first, second]
    assert len(sink.path.read_text().splitlines()) == 2


def test_read_missing_file(tmp_path):
    assert JsonlAuditSink(tmp_path / "none.jsonl").read_all() == []


def test_corrupt_lines_skipped(tmp_path):
    path = tmp_path / "resolver.jsonl"
    sink = JsonlAuditSink(path)
    sink.record(make_audit(hybrid="V001", final="V001", agreement=True))
    with open(path, "a", encoding="utf-8") as f:
        f.write("{not json\n")
        f.write('{"unexpected": 1}\n')
        f.write("\n")
    assert len(sink.read_all()) == 1


def test_created_at_is_utc_iso():
    audit = make_audit()
    assert audit.created_at.endswith("+00:00")


def test_summarize():
    audits = [
        make_audit(hybrid="V001", final="V001", agreement=True),
        make_audit(hybrid="V006", final="V006"),
        make_audit(ai="V012", final="V012"),
        make_audit(),
    ]
    assert summarize(audits) == {
        "total": 4,
        "resolved": 3,
        "unresolved": 1,
        "hybrid_only": 2,
        "ai_rescued": 1,
        "agreement": 1,
    }


def test_resolver_writes_every_outcome(tmp_path):
    sink = JsonlAuditSink(tmp_path / "resolver.jsonl")
    resolver = LensResolver(Catalog.load(), audit_sink=sink)
    resolver.resolve("Oasys Max 1-Day")
    resolver.resolve("Acuvue Oasys")
    resolver.resolve("Acuvue")

    audits = sink.read_all()
    assert [a.final_lens_id for a in audits] == ["V001", "V006", None]
    assert audits[0].agreement is True
