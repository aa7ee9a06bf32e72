"""Deterministic scoring of filtered lens candidates."""

from __future__ import annotations

import json
from typing import Iterable

from lensmatch.config import DATA_DIR, MatchConfig, ScoringWeights, Thresholds
from lensmatch.normalize import tokenize, unique_tokens
from lensmatch.types import Confidence, LensProduct, ResolveInput, ResolveResult, ScoredLens


def _load_synonyms() -> dict[str, list[str]]:
    """Load OCR shorthand expansions from synonyms.json."""
    path = DATA_DIR / "synonyms.json"
    if not path.exists():
        return {}
    return json.loads(path.read_text(encoding="utf-8"))


SYNONYMS: dict[str, list[str]] = _load_synonyms()


def expand_tokens(tokens: list[str], synonyms: dict[str, list[str]] | None = None) -> list[str]:
    """Append synonym expansions after each token, without repeats ("1d" -> "1d 1day 1 day")."""
    if synonyms is None:
        synonyms = SYNONYMS
    expanded: list[str] = []
    for token in tokens:
        expanded.append(token)
        expanded.extend(synonyms.get(token, []))
    return unique_tokens(expanded)


def input_tokens(raw_text: str, synonyms: dict[str, list[str]] | None = None) -> list[str]:
    return expand_tokens(unique_tokens(tokenize(raw_text)), synonyms)


def score_lens(
    tokens: list[str],
    lens: LensProduct,
    request: ResolveInput,
    weights: ScoringWeights,
) -> ScoredLens:
    """Score one candidate. Contributions are summed without normalization."""
    features: dict[str, float] = {}
    reasons: list[str] = []

    brand_tokens = set(tokenize(lens.brand))
    name_tokens = set(tokenize(lens.name))

    # 1. Brand tokens dominate
    brand_hits = sum(1 for t in tokens if t in brand_tokens)
    features["brand_hits"] = brand_hits
    if brand_hits:
        reasons.append("brand_token_match")

    # 2. Name tokens
    name_hits = sum(1 for t in tokens if t in name_tokens)
    features["name_hits"] = name_hits
    if name_hits:
        reasons.append("name_token_match")

    score = brand_hits * weights.brand_token + name_hits * weights.name_token

    # 3. Numeric tie-breakers
    if request.base_curve is not None and request.base_curve in lens.base_curves:
        score += weights.base_curve_bonus
        reasons.append("base_curve_match")

    if (
        request.diameter is not None
        and lens.diameter is not None
        and abs(lens.diameter - request.diameter) <= weights.diameter_tolerance
    ):
        score += weights.diameter_bonus
        reasons.append("diameter_match")

    features["score"] = score
    return ScoredLens(lens_id=lens.lens_id, score=score, features=features, reasons=reasons)


def decide_confidence(best: float, runner_up: float, thresholds: Thresholds) -> Confidence:
    """Apply the confidence bands to the winning score and its margin."""
    gap = best - runner_up
    if gap <= 0:
        return "low"
    if best >= thresholds.high_score and gap >= thresholds.high_margin:
        return "high"
    if best >= thresholds.medium_score and gap >= thresholds.medium_margin:
        return "medium"
    return "low"


def score_candidates(
    candidates: Iterable[LensProduct],
    request: ResolveInput,
    config: MatchConfig | None = None,
) -> list[ScoredLens]:
    """Score every candidate, preserving candidate order."""
    if config is None:
        config = MatchConfig()
    tokens = input_tokens(request.raw_text)
    return [score_lens(tokens, lens, request, config.scoring) for lens in candidates]


def resolve_scores(scored: list[ScoredLens], thresholds: Thresholds) -> ResolveResult:
    """Pick the best candidate in a single pass and derive its confidence.

    Best and runner-up both start at zero, so a lone candidate scoring zero
    is a tie. A low-confidence result never carries a lens id.
    """
    best_score = 0.0
    runner_up = 0.0
    best_id: str | None = None

    for sc in scored:
        if sc.score > best_score:
            runner_up = best_score
            best_score = sc.score
            best_id = sc.lens_id
        elif sc.score > runner_up:
            runner_up = sc.score

    if best_id is None or best_score - runner_up <= 0:
        return ResolveResult(lens_id=None, score=0.0, confidence="low")

    confidence = decide_confidence(best_score, runner_up, thresholds)
    return ResolveResult(
        lens_id=best_id if confidence != "low" else None,
        score=best_score,
        confidence=confidence,
    )


def resolve_brand(
    request: ResolveInput,
    candidates: Iterable[LensProduct],
    config: MatchConfig | None = None,
) -> ResolveResult:
    """Deterministic resolver over an already filtered candidate list."""
    if config is None:
        config = MatchConfig()
    scored = score_candidates(candidates, request, config)
    return resolve_scores(scored, config.thresholds)
