"""Read-only lens catalog, colour table and display helpers."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Iterable, Iterator

import structlog

from lensmatch.config import DATA_DIR
from lensmatch.types import LensProduct

log = structlog.get_logger()

_PACK_SIZE = re.compile(r"_(\d+)$")


def _load_json(path: Path):
    if not path.exists():
        raise FileNotFoundError(f"Catalog data file not found: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def _product_from_dict(row: dict) -> LensProduct:
    diameter = row.get("diameter")
    return LensProduct(
        lens_id=row["lens_id"],
        brand=row["brand"],
        name=row["name"],
        toric=bool(row.get("toric", False)),
        multifocal=bool(row.get("multifocal", False)),
        multi_bc=bool(row.get("multi_bc", False)),
        base_curves=tuple(float(bc) for bc in row.get("base_curves", [])),
        diameter=float(diameter) if diameter is not None else None,
        add_options=tuple(row.get("add_options", [])),
    )


class Catalog:
    """Immutable set of lens products, shared freely between resolutions."""

    def __init__(
        self,
        products: Iterable[LensProduct],
        colors: dict[str, list[str]] | None = None,
    ) -> None:
        self._products: tuple[LensProduct, ...] = tuple(products)
        self._by_id: dict[str, LensProduct] = {}
        for product in self._products:
            if product.lens_id in self._by_id:
                raise ValueError(f"Duplicate lens_id in catalog: {product.lens_id}")
            if not product.base_curves:
                raise ValueError(f"Lens {product.lens_id} has no base curve")
            if product.multifocal and not product.add_options:
                raise ValueError(f"Multifocal lens {product.lens_id} has no ADD options")
            self._by_id[product.lens_id] = product
        self._colors: dict[str, tuple[str, ...]] = {
            label: tuple(values) for label, values in (colors or {}).items()
        }

    @classmethod
    def load(cls, data_dir: str | Path | None = None) -> Catalog:
        """Load lenses.json and colors.json from the data directory."""
        directory = Path(data_dir) if data_dir is not None else DATA_DIR
        rows = _load_json(directory / "lenses.json")
        colors_path = directory / "colors.json"
        colors = json.loads(colors_path.read_text(encoding="utf-8")) if colors_path.exists() else {}
        catalog = cls((_product_from_dict(row) for row in rows), colors)
        log.info("catalog_loaded", path=str(directory), lenses=len(catalog))
        return catalog

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[LensProduct]:
        return iter(self._products)

    def __contains__(self, lens_id: object) -> bool:
        return lens_id in self._by_id

    @property
    def products(self) -> tuple[LensProduct, ...]:
        return self._products

    def get(self, lens_id: str) -> LensProduct | None:
        return self._by_id.get(lens_id)

    def require(self, lens_id: str) -> LensProduct:
        lens = self._by_id.get(lens_id)
        if lens is None:
            raise KeyError(f"Unknown lens_id: {lens_id}")
        return lens

    def add_options(self, lens_id: str) -> tuple[str, ...]:
        """ADD labels selectable for a lens; empty unless multifocal."""
        lens = self._by_id.get(lens_id)
        return lens.add_options if lens else ()

    def color_options(self, lens_id: str) -> tuple[str, ...]:
        """Colour names for a lens, looked up by its display label."""
        lens = self._by_id.get(lens_id)
        if lens is None:
            return ()
        return self._colors.get(lens.label, ())


def pack_size(sku: str) -> int | None:
    """Physical lens count encoded as the trailing `_<n>` of a SKU.

    OASYS_24 -> 24, MOIST_1DAY_90 -> 90, ULTRA_TORIC_6 -> 6.
    """
    match = _PACK_SIZE.search(sku)
    return int(match.group(1)) if match else None


def display_name(lens: LensProduct, sku: str | None = None) -> str:
    brand = lens.brand.strip()
    name = lens.name.strip()
    # "Total30 Total30" reads badly; drop the brand when it repeats the name
    base = f"{brand} {name}" if brand and brand.lower() != name.lower() else name
    if not sku:
        return base
    size = pack_size(sku)
    return f"{base} ({size}-pack)" if size else base
