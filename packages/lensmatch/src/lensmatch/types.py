"""Core types for the lensmatch resolver."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

Confidence = Literal["high", "medium", "low"]


@dataclass(frozen=True)
class LensProduct:
    lens_id: str
    brand: str
    name: str
    toric: bool = False
    multifocal: bool = False
    multi_bc: bool = False
    base_curves: tuple[float, ...] = ()
    diameter: float | None = None
    add_options: tuple[str, ...] = ()

    @property
    def label(self) -> str:
        """Human-readable 'brand name' label, whitespace collapsed."""
        return " ".join(f"{self.brand} {self.name}".split())


@dataclass(frozen=True)
class ResolveInput:
    raw_text: str
    has_cyl: bool = False
    has_add: bool = False
    base_curve: float | None = None
    diameter: float | None = None


@dataclass(frozen=True)
class ResolveResult:
    lens_id: str | None
    score: float
    confidence: Confidence


@dataclass
class ScoredLens:
    lens_id: str
    score: float
    features: dict[str, float] = field(default_factory=dict)
    reasons: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AddState:
    has_add: bool
    is_ambiguous: bool
    tokens: tuple[str, ...] = ()


@dataclass
class FilterTrace:
    """Survivor ids after each filter stage, in stage order."""

    manufacturer: str | None = None
    daily_intent: bool = False
    stages: list[tuple[str, list[str]]] = field(default_factory=list)

    def record(self, stage: str, survivors: list[LensProduct]) -> None:
        self.stages.append((stage, [lens.lens_id for lens in survivors]))


@dataclass(frozen=True)
class ResolutionAudit:
    raw_text: str
    hybrid_lens_id: str | None
    ai_lens_id: str | None
    final_lens_id: str | None
    agreement: bool
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


@dataclass
class Resolution:
    """Outcome of one resolution request, as returned to callers."""

    final_lens_id: str | None
    confidence: Confidence
    hybrid_lens_id: str | None
    hybrid_score: float
    hybrid_confidence: Confidence
    ai_lens_id: str | None
    agreement: bool
    audited: bool
    add_state: AddState | None = None
    candidate_ids: list[str] = field(default_factory=list)
    trace: FilterTrace | None = None


@dataclass(frozen=True)
class QuantityConfig:
    duration_months: int
    duration_label: str
    default_per_eye: int
    max_per_eye: int
    options: tuple[int, ...]


@dataclass(frozen=True)
class PriceResult:
    sku: str
    manufacturer: str | None
    price_per_box_cents: int
    box_count: int
    total_amount_cents: int
    price_reason: str = "flat_retail_v1"


@dataclass(frozen=True)
class OrderQuote:
    lens_id: str
    sku: str
    supply_months: int
    days_until_expiry: int
    quantity: QuantityConfig
    right_box_count: int | None
    left_box_count: int | None
    box_count: int
    price: PriceResult
    price_reason: str
