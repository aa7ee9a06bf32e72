"""Structural filter chain applied before scoring.

Only unambiguous cues narrow the catalog here: a named manufacturer, the
toric/multifocal flags and daily-wear cues. Fuzzy brand evidence
is left to the scorer.
"""

from __future__ import annotations

from typing import Iterable

import structlog

from lensmatch.detectors import detect_manufacturer, signals_daily
from lensmatch.types import FilterTrace, LensProduct, ResolveInput

log = structlog.get_logger()


def filter_manufacturer(
    candidates: list[LensProduct], manufacturer: str | None
) -> list[LensProduct]:
    """Keep lenses whose id carries the manufacturer prefix; no-op when none detected."""
    if manufacturer is None:
        return list(candidates)
    return [lens for lens in candidates if lens.lens_id.startswith(manufacturer)]


def filter_toric(candidates: list[LensProduct], has_cyl: bool) -> list[LensProduct]:
    return [lens for lens in candidates if lens.toric == has_cyl]


def filter_multifocal(candidates: list[LensProduct], has_add: bool) -> list[LensProduct]:
    return [lens for lens in candidates if lens.multifocal == has_add]


def is_daily(lens: LensProduct) -> bool:
    return signals_daily(f"{lens.brand} {lens.name}")


def filter_daily(candidates: list[LensProduct], daily_intent: bool) -> list[LensProduct]:
    """Partition on daily wear, but never empty the candidate set.

    Daily intent keeps daily lenses, otherwise daily lenses are dropped. If the
    partition would leave nothing (a gap in the catalog), the input is returned
    unchanged.
    """
    partitioned = [lens for lens in candidates if is_daily(lens) == daily_intent]
    if not partitioned:
        return list(candidates)
    return partitioned


def run_filter_chain(
    catalog: Iterable[LensProduct], request: ResolveInput
) -> tuple[list[LensProduct], FilterTrace]:
    """Run the four stages in order, each on the previous stage's survivors."""
    trace = FilterTrace(
        manufacturer=detect_manufacturer(request.raw_text),
        daily_intent=signals_daily(request.raw_text),
    )

    candidates = list(catalog)
    trace.record("catalog", candidates)

    candidates = filter_manufacturer(candidates, trace.manufacturer)
    trace.record("manufacturer", candidates)

    candidates = filter_toric(candidates, request.has_cyl)
    trace.record("toric", candidates)

    candidates = filter_multifocal(candidates, request.has_add)
    trace.record("multifocal", candidates)

    candidates = filter_daily(candidates, trace.daily_intent)
    trace.record("daily", candidates)

    log.debug(
        "filter_chain_done",
        manufacturer=trace.manufacturer,
        daily_intent=trace.daily_intent,
        counts={stage: len(ids) for stage, ids in trace.stages},
    )
    return candidates, trace
