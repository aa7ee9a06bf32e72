"""Prescription expiry -> supply months -> box count -> price.

Every function here is pure and recomputed on demand. The only time-varying
input is today's date, so results change as a prescription nears expiry.
"""

from __future__ import annotations

import math
from datetime import date, datetime

import structlog

from lensmatch.config import SupplyConfig
from lensmatch.pricing import ProductConfig
from lensmatch.types import OrderQuote, QuantityConfig

log = structlog.get_logger()


class InvalidExpiryError(ValueError):
    """Prescription expiry is not a parseable date."""


def parse_expiry(expires: str | date) -> date:
    if isinstance(expires, datetime):
        return expires.date()
    if isinstance(expires, date):
        return expires
    if not isinstance(expires, str) or not expires.strip():
        raise InvalidExpiryError(f"Invalid RX expiration date: {expires!r}")
    try:
        return datetime.fromisoformat(expires.strip()).date()
    except ValueError as e:
        raise InvalidExpiryError(f"Invalid RX expiration date: {expires!r}") from e


def days_until_expiry(expires: str | date, today: date | None = None) -> int:
    """Whole days from today to the expiry date (negative once expired)."""
    if today is None:
        today = date.today()
    return (parse_expiry(expires) - today).days


def allowed_supply_months(days_left: int, config: SupplyConfig | None = None) -> int:
    """12 months at or above the threshold (150 days), 6 below it. A hard cutoff."""
    if config is None:
        config = SupplyConfig()
    if days_left >= config.annual_threshold_days:
        return config.annual_months
    return config.short_months


def default_box_count(supply_months: int, box_months: int) -> int:
    return math.ceil(supply_months / box_months)


def resolve_box_count(requested: int | None, default: int, maximum: int | None = None) -> int:
    """Use a positive requested count, never above what the prescription allows."""
    if maximum is None:
        maximum = default
    if requested is not None and requested > 0:
        return min(requested, maximum)
    return default


def duration_label(months: int) -> str:
    if months == 1:
        return "30-pack"
    if months == 3:
        return "90-pack"
    return f"{months}-month"


def build_quantity_config(
    expires: str | date,
    sku: str,
    products: ProductConfig,
    config: SupplyConfig | None = None,
    today: date | None = None,
) -> QuantityConfig:
    """Per-eye quantity rules for one SKU under the current prescription."""
    if config is None:
        config = SupplyConfig()
    box_months = products.box_duration_months(sku)
    supply_months = allowed_supply_months(days_until_expiry(expires, today), config)

    default_per_eye = default_box_count(supply_months, box_months)
    max_per_eye = default_per_eye * config.max_multiplier

    return QuantityConfig(
        duration_months=box_months,
        duration_label=duration_label(box_months),
        default_per_eye=default_per_eye,
        max_per_eye=max_per_eye,
        options=tuple(range(0, max_per_eye + 1)),
    )


def quote_order(
    lens_id: str,
    expires: str | date,
    products: ProductConfig,
    *,
    right: bool = True,
    left: bool = True,
    right_box_count: int | None = None,
    left_box_count: int | None = None,
    config: SupplyConfig | None = None,
    today: date | None = None,
) -> OrderQuote:
    """Resolve SKU, per-eye box counts and price for an identified lens.

    Raises InvalidExpiryError for a bad expiry and UnconfiguredSkuError when
    the lens, the SKU duration or the SKU price is missing.
    """
    if not right and not left:
        raise ValueError("Order needs at least one eye")
    if config is None:
        config = SupplyConfig()
    # One date for the whole quote, so supply months and box counts agree
    if today is None:
        today = date.today()

    sku = products.default_sku(lens_id)
    days_left = days_until_expiry(expires, today)
    supply_months = allowed_supply_months(days_left, config)
    quantity = build_quantity_config(expires, sku, products, config, today)

    final_right = (
        resolve_box_count(right_box_count, quantity.default_per_eye, quantity.max_per_eye)
        if right
        else None
    )
    final_left = (
        resolve_box_count(left_box_count, quantity.default_per_eye, quantity.max_per_eye)
        if left
        else None
    )
    total_boxes = (final_right or 0) + (final_left or 0)

    price = products.price(sku, total_boxes)
    explicit = right_box_count is not None or left_box_count is not None
    price_reason = (
        f"cart_resolve: sku={sku}, targetMonths={supply_months}, "
        f"durationMonths={quantity.duration_months}, "
        f"defaultPerEye={quantity.default_per_eye}, maxPerEye={quantity.max_per_eye}, "
        f"right={final_right or 0}, left={final_left or 0}, total={total_boxes}, "
        f"explicitQty={explicit}"
    )
    log.info(
        "order_quoted",
        lens_id=lens_id,
        sku=sku,
        days_until_expiry=days_left,
        supply_months=supply_months,
        box_count=total_boxes,
        total_amount_cents=price.total_amount_cents,
    )

    return OrderQuote(
        lens_id=lens_id,
        sku=sku,
        supply_months=supply_months,
        days_until_expiry=days_left,
        quantity=quantity,
        right_box_count=final_right,
        left_box_count=final_left,
        box_count=total_boxes,
        price=price,
        price_reason=price_reason,
    )
