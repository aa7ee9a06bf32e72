"""Main orchestration: filter, score, decide, fall back, audit."""

from __future__ import annotations

import structlog

from lensmatch.add_tokens import classify_add
from lensmatch.audit import AuditSink
from lensmatch.catalog import Catalog
from lensmatch.config import MatchConfig
from lensmatch.fallback import LensDisambiguator, LLMProvider
from lensmatch.filters import run_filter_chain
from lensmatch.scoring import resolve_brand
from lensmatch.types import AddState, Confidence, Resolution, ResolutionAudit, ResolveInput

log = structlog.get_logger()


class LensResolver:
    """Resolves free text to a catalog lens with a confidence band.

    Holds only read-only collaborators, so one instance can serve concurrent
    requests.
    """

    def __init__(
        self,
        catalog: Catalog,
        config: MatchConfig | None = None,
        llm_provider: LLMProvider | None = None,
        audit_sink: AuditSink | None = None,
    ) -> None:
        self.catalog = catalog
        self.config = config or MatchConfig()
        self.disambiguator = LensDisambiguator(self.config.fallback, llm_provider)
        self.audit_sink = audit_sink

    def resolve(
        self,
        raw_text: str,
        *,
        has_cyl: bool = False,
        has_add: bool | None = None,
        base_curve: float | None = None,
        diameter: float | None = None,
    ) -> Resolution:
        """Resolve one request.

        When has_add is None (no structured prescription draft yet) it is
        derived from the ADD tokens found in raw_text.
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ValueError("raw_text must be a non-empty string")

        add_state: AddState | None = None
        if has_add is None:
            add_state = classify_add(raw_text)
            has_add = add_state.has_add

        request = ResolveInput(
            raw_text=raw_text,
            has_cyl=has_cyl,
            has_add=has_add,
            base_curve=base_curve,
            diameter=diameter,
        )
        log.debug(
            "resolve_start",
            raw_text=raw_text,
            has_cyl=has_cyl,
            has_add=has_add,
            base_curve=base_curve,
            diameter=diameter,
            add_tokens=list(add_state.tokens) if add_state else None,
        )

        # Stage 1: structural filters
        candidates, trace = run_filter_chain(self.catalog, request)

        # Stage 2: deterministic scoring
        hybrid = resolve_brand(request, candidates, self.config)
        log.debug(
            "hybrid_done",
            lens_id=hybrid.lens_id,
            score=hybrid.score,
            confidence=hybrid.confidence,
            candidate_count=len(candidates),
        )
        candidate_ids = [lens.lens_id for lens in candidates]

        # Stage 3: high confidence short circuit, no second opinion
        if hybrid.confidence == "high" and hybrid.lens_id is not None:
            self._write_audit(
                ResolutionAudit(
                    raw_text=raw_text,
                    hybrid_lens_id=hybrid.lens_id,
                    ai_lens_id=None,
                    final_lens_id=hybrid.lens_id,
                    agreement=True,
                )
            )
            log.info("resolve_done", final_lens_id=hybrid.lens_id, confidence="high", path="short_circuit")
            return Resolution(
                final_lens_id=hybrid.lens_id,
                confidence="high",
                hybrid_lens_id=hybrid.lens_id,
                hybrid_score=hybrid.score,
                hybrid_confidence=hybrid.confidence,
                ai_lens_id=None,
                agreement=True,
                audited=False,
                add_state=add_state,
                candidate_ids=candidate_ids,
                trace=trace,
            )

        # Stage 4: AI fallback, only for low confidence
        ai_lens_id: str | None = None
        if hybrid.confidence == "low":
            ai_lens_id = self.disambiguator.choose(raw_text, candidates)

        agreement = (
            hybrid.lens_id is not None
            and ai_lens_id is not None
            and hybrid.lens_id == ai_lens_id
        )

        # Stage 5: final decision
        final_lens_id: str | None
        confidence: Confidence
        if hybrid.confidence in ("high", "medium") and hybrid.lens_id is not None:
            final_lens_id = hybrid.lens_id
            confidence = hybrid.confidence
        elif ai_lens_id is not None:
            final_lens_id = ai_lens_id
            confidence = "medium"
        else:
            final_lens_id = None
            confidence = "low"

        self._write_audit(
            ResolutionAudit(
                raw_text=raw_text,
                hybrid_lens_id=hybrid.lens_id,
                ai_lens_id=ai_lens_id,
                final_lens_id=final_lens_id,
                agreement=agreement,
            )
        )
        log.info(
            "resolve_done",
            final_lens_id=final_lens_id,
            confidence=confidence,
            ai_lens_id=ai_lens_id,
            path="fallback" if hybrid.confidence == "low" else "hybrid",
        )

        return Resolution(
            final_lens_id=final_lens_id,
            confidence=confidence,
            hybrid_lens_id=hybrid.lens_id,
            hybrid_score=hybrid.score,
            hybrid_confidence=hybrid.confidence,
            ai_lens_id=ai_lens_id,
            agreement=agreement,
            audited=True,
            add_state=add_state,
            candidate_ids=candidate_ids,
            trace=trace,
        )

    def resolve_input(self, request: ResolveInput) -> Resolution:
        return self.resolve(
            request.raw_text,
            has_cyl=request.has_cyl,
            has_add=request.has_add,
            base_curve=request.base_curve,
            diameter=request.diameter,
        )

    def _write_audit(self, audit: ResolutionAudit) -> None:
        if self.audit_sink is None:
            return
        try:
            self.audit_sink.record(audit)
        except Exception as e:
            log.error("audit_write_failed", error=str(e), raw_text=audit.raw_text)
