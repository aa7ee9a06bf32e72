"""Configuration for the lensmatch resolver and order derivation."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DATA_DIR = Path(os.environ.get("LENSMATCH_DATA") or Path(__file__).parent / "data")


@dataclass
class ScoringWeights:
    brand_token: float = 30.0
    name_token: float = 18.0
    base_curve_bonus: float = 6.0
    diameter_bonus: float = 6.0
    diameter_tolerance: float = 0.15


@dataclass
class Thresholds:
    high_score: float = 50.0
    high_margin: float = 15.0
    medium_score: float = 35.0
    medium_margin: float = 8.0


@dataclass
class FallbackConfig:
    enabled: bool = True
    max_candidates: int = 15
    model: str = "gemini-2.0-flash"
    temperature: float = 0.0
    timeout_seconds: float = 5.0


@dataclass
class SupplyConfig:
    annual_threshold_days: int = 150  # ~5 months
    annual_months: int = 12
    short_months: int = 6
    # Per-eye maximum as a multiple of the default; requested counts are clamped to it
    max_multiplier: int = 1


@dataclass
class MatchConfig:
    scoring: ScoringWeights = field(default_factory=ScoringWeights)
    thresholds: Thresholds = field(default_factory=Thresholds)
    fallback: FallbackConfig = field(default_factory=FallbackConfig)
    supply: SupplyConfig = field(default_factory=SupplyConfig)
