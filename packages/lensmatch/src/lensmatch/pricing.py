"""Static product configuration: box duration, price and default SKU per lens.

Each SKU is one physical box. The three lookups share one error path so a
missing entry always surfaces as UnconfiguredSkuError naming the key; nothing
here guesses a price or a duration.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog

from lensmatch.config import DATA_DIR
from lensmatch.types import PriceResult

log = structlog.get_logger()

ConfigKind = Literal["duration", "price", "lens"]


class UnconfiguredSkuError(LookupError):
    """A SKU or lens has no entry in the product configuration."""

    def __init__(self, kind: ConfigKind, key: str) -> None:
        self.kind = kind
        self.key = key
        if kind == "lens":
            message = f"No SKU configured for lens_id {key}"
        else:
            message = f"No {kind} configured for SKU {key}"
        super().__init__(message)


@dataclass(frozen=True)
class SkuEntry:
    manufacturer: str | None = None
    months: int | None = None
    price_cents: int | None = None


class ProductConfig:
    """One lookup over the SKU duration, SKU price and lens -> SKU tables."""

    def __init__(
        self,
        skus: dict[str, SkuEntry],
        lens_skus: dict[str, str],
    ) -> None:
        self._skus = dict(skus)
        self._lens_skus = dict(lens_skus)

    @classmethod
    def from_dict(cls, data: dict) -> ProductConfig:
        skus = {
            sku: SkuEntry(
                manufacturer=row.get("manufacturer"),
                months=row.get("months"),
                price_cents=row.get("price_cents"),
            )
            for sku, row in data.get("skus", {}).items()
        }
        return cls(skus, data.get("lens_skus", {}))

    @classmethod
    def load(cls, data_dir: str | Path | None = None) -> ProductConfig:
        directory = Path(data_dir) if data_dir is not None else DATA_DIR
        path = directory / "products.json"
        config = cls.from_dict(json.loads(path.read_text(encoding="utf-8")))
        log.info("product_config_loaded", path=str(path), skus=len(config._skus))
        return config

    def box_duration_months(self, sku: str) -> int:
        entry = self._skus.get(sku)
        if entry is None or not entry.months:
            raise UnconfiguredSkuError("duration", sku)
        return entry.months

    def price_per_box_cents(self, sku: str) -> int:
        entry = self._skus.get(sku)
        if entry is None or entry.price_cents is None:
            raise UnconfiguredSkuError("price", sku)
        return entry.price_cents

    def manufacturer(self, sku: str) -> str | None:
        entry = self._skus.get(sku)
        return entry.manufacturer if entry else None

    def default_sku(self, lens_id: str) -> str:
        sku = self._lens_skus.get(lens_id)
        if not sku:
            raise UnconfiguredSkuError("lens", lens_id)
        return sku

    def price(self, sku: str, box_count: int) -> PriceResult:
        """Flat per-box retail price times box count."""
        per_box = self.price_per_box_cents(sku)
        return PriceResult(
            sku=sku,
            manufacturer=self.manufacturer(sku),
            price_per_box_cents=per_box,
            box_count=box_count,
            total_amount_cents=per_box * box_count,
        )
