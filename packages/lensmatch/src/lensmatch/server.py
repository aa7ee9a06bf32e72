"""FastAPI endpoints for lens resolution and order quoting."""

from datetime import date

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from lensmatch.add_tokens import classify_add
from lensmatch.catalog import Catalog, display_name
from lensmatch.ordering import quote_order
from lensmatch.pricing import ProductConfig, UnconfiguredSkuError
from lensmatch.resolver import LensResolver

log = structlog.get_logger()


class ResolveLensRequest(BaseModel):
    """Request body for lens resolution."""

    raw_string: str
    has_cyl: bool = False
    has_add: bool | None = None
    bc: float | None = None
    dia: float | None = None


class ResolveLensResponse(BaseModel):
    final_lens_id: str | None
    confidence: str
    hybrid_lens_id: str | None
    ai_lens_id: str | None
    agreement: bool
    audited: bool
    label: str | None = None


class AddTokensRequest(BaseModel):
    raw_string: str


class AddTokensResponse(BaseModel):
    has_add: bool
    is_ambiguous: bool
    tokens: list[str]


class QuoteRequest(BaseModel):
    """Request body for an order quote. Box counts are per eye."""

    lens_id: str
    expires: str
    right: bool = True
    left: bool = True
    right_box_count: int | None = Field(default=None, ge=0)
    left_box_count: int | None = Field(default=None, ge=0)


class QuoteResponse(BaseModel):
    lens_id: str
    sku: str
    display_name: str
    supply_months: int
    duration_label: str
    default_per_eye: int
    max_per_eye: int
    options: list[int]
    right_box_count: int | None
    left_box_count: int | None
    box_count: int
    price_per_box_cents: int
    total_amount_cents: int
    price_reason: str


class LensResponse(BaseModel):
    lens_id: str
    label: str
    toric: bool
    multifocal: bool
    base_curves: list[float]
    diameter: float | None
    add_options: list[str]
    color_options: list[str]


def create_app(
    resolver: LensResolver,
    products: ProductConfig,
    today: date | None = None,
) -> FastAPI:
    """Create the FastAPI application around an already built resolver.

    `today` pins the date used for expiry math; leave it None in production.
    """
    app = FastAPI(title="lensmatch")
    catalog: Catalog = resolver.catalog

    @app.post("/api/resolve-lens")
    def resolve_lens(body: ResolveLensRequest) -> ResolveLensResponse:
        try:
            result = resolver.resolve(
                body.raw_string,
                has_cyl=body.has_cyl,
                has_add=body.has_add,
                base_curve=body.bc,
                diameter=body.dia,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        lens = catalog.get(result.final_lens_id) if result.final_lens_id else None
        return ResolveLensResponse(
            final_lens_id=result.final_lens_id,
            confidence=result.confidence,
            hybrid_lens_id=result.hybrid_lens_id,
            ai_lens_id=result.ai_lens_id,
            agreement=result.agreement,
            audited=result.audited,
            label=lens.label if lens else None,
        )

    @app.post("/api/add-tokens")
    def add_tokens(body: AddTokensRequest) -> AddTokensResponse:
        state = classify_add(body.raw_string)
        return AddTokensResponse(
            has_add=state.has_add,
            is_ambiguous=state.is_ambiguous,
            tokens=list(state.tokens),
        )

    @app.post("/api/quote")
    def quote(body: QuoteRequest) -> QuoteResponse:
        lens = catalog.get(body.lens_id)
        if lens is None:
            raise HTTPException(status_code=404, detail=f"Unknown lens_id {body.lens_id}")
        try:
            q = quote_order(
                body.lens_id,
                body.expires,
                products,
                right=body.right,
                left=body.left,
                right_box_count=body.right_box_count,
                left_box_count=body.left_box_count,
                config=resolver.config.supply,
                today=today,
            )
        except UnconfiguredSkuError as e:
            log.error("quote_unconfigured", kind=e.kind, key=e.key)
            raise HTTPException(status_code=422, detail=str(e))
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        return QuoteResponse(
            lens_id=q.lens_id,
            sku=q.sku,
            display_name=display_name(lens, q.sku),
            supply_months=q.supply_months,
            duration_label=q.quantity.duration_label,
            default_per_eye=q.quantity.default_per_eye,
            max_per_eye=q.quantity.max_per_eye,
            options=list(q.quantity.options),
            right_box_count=q.right_box_count,
            left_box_count=q.left_box_count,
            box_count=q.box_count,
            price_per_box_cents=q.price.price_per_box_cents,
            total_amount_cents=q.price.total_amount_cents,
            price_reason=q.price_reason,
        )

    @app.get("/api/lenses/{lens_id}")
    def get_lens(lens_id: str) -> LensResponse:
        lens = catalog.get(lens_id)
        if lens is None:
            raise HTTPException(status_code=404, detail=f"Unknown lens_id {lens_id}")
        return LensResponse(
            lens_id=lens.lens_id,
            label=lens.label,
            toric=lens.toric,
            multifocal=lens.multifocal,
            base_curves=list(lens.base_curves),
            diameter=lens.diameter,
            add_options=list(catalog.add_options(lens_id)),
            color_options=list(catalog.color_options(lens_id)),
        )

    return app
