"""Append-only audit trail of resolution outcomes."""

from __future__ import annotations

import json
import threading
from dataclasses import asdict
from pathlib import Path
from typing import Protocol

import structlog

from lensmatch.types import ResolutionAudit

log = structlog.get_logger()


class AuditSink(Protocol):
    """Protocol for audit stores. Records are written once and never read back."""

    def record(self, audit: ResolutionAudit) -> None: ...


class JsonlAuditSink:
    """Appends one JSON object per resolution to a file."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(self, audit: ResolutionAudit) -> None:
        line = json.dumps(asdict(audit), ensure_ascii=False)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")

    def read_all(self) -> list[ResolutionAudit]:
        """Load every record, skipping lines that do not parse."""
        if not self.path.exists():
            return []
        audits: list[ResolutionAudit] = []
        with open(self.path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                if not line.strip():
                    continue
                try:
                    audits.append(ResolutionAudit(**json.loads(line)))
                except (json.JSONDecodeError, TypeError) as e:
                    log.warning("audit_line_skipped", path=str(self.path), line=lineno, error=str(e))
        return audits


def summarize(audits: list[ResolutionAudit]) -> dict[str, int]:
    """Count outcomes across audit records."""
    summary = {
        "total": len(audits),
        "resolved": 0,
        "unresolved": 0,
        "hybrid_only": 0,
        "ai_rescued": 0,
        "agreement": 0,
    }
    for a in audits:
        if a.final_lens_id is None:
            summary["unresolved"] += 1
            continue
        summary["resolved"] += 1
        if a.agreement:
            summary["agreement"] += 1
        if a.ai_lens_id is not None and a.hybrid_lens_id is None:
            summary["ai_rescued"] += 1
        elif a.hybrid_lens_id is not None:
            summary["hybrid_only"] += 1
    return summary
