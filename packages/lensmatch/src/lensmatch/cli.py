"""CLI tool for lens resolution, order quoting and audit review."""

import argparse
import sys

import pandas as pd
import structlog

from lensmatch.add_tokens import classify_add
from lensmatch.audit import JsonlAuditSink, summarize
from lensmatch.catalog import Catalog, display_name
from lensmatch.config import MatchConfig
from lensmatch.logging import configure_logging
from lensmatch.ordering import InvalidExpiryError, quote_order
from lensmatch.pricing import ProductConfig, UnconfiguredSkuError
from lensmatch.resolver import LensResolver


def _build_resolver(args: argparse.Namespace) -> LensResolver:
    """Build a LensResolver, optionally wiring up the Gemini fallback."""
    log = structlog.get_logger()
    config = MatchConfig()
    catalog = Catalog.load(args.data_dir)

    llm_provider = None
    if args.no_gemini:
        config.fallback.enabled = False
    else:
        from lensmatch.gemini import GeminiLLMProvider

        llm_provider = GeminiLLMProvider(config.fallback)
        log.info("gemini_fallback_enabled", model=config.fallback.model)

    audit_sink = JsonlAuditSink(args.audit_log) if args.audit_log else None
    return LensResolver(
        catalog,
        config=config,
        llm_provider=llm_provider,
        audit_sink=audit_sink,
    )


def cmd_resolve(args: argparse.Namespace) -> None:
    resolver = _build_resolver(args)
    result = resolver.resolve(
        args.text,
        has_cyl=args.cyl,
        has_add=args.add,
        base_curve=args.bc,
        diameter=args.dia,
    )

    lens = resolver.catalog.get(result.final_lens_id) if result.final_lens_id else None
    print(f"Final:      {result.final_lens_id or '-'}  ({lens.label if lens else 'manual selection needed'})")
    print(f"Confidence: {result.confidence}")
    print(f"Hybrid:     {result.hybrid_lens_id or '-'}  score={result.hybrid_score:g} ({result.hybrid_confidence})")
    print(f"AI:         {result.ai_lens_id or '-'}")
    print(f"Agreement:  {result.agreement}  audited={result.audited}")
    if args.verbose and result.trace is not None:
        print("\n--- Filter stages ---")
        print(f"manufacturer={result.trace.manufacturer} daily_intent={result.trace.daily_intent}")
        for stage, ids in result.trace.stages:
            print(f"  {stage:<13} {len(ids):>3}  {' '.join(ids) if len(ids) <= 15 else ''}")


def cmd_add(args: argparse.Namespace) -> None:
    state = classify_add(args.text)
    print(f"has_add={state.has_add} ambiguous={state.is_ambiguous} tokens={list(state.tokens)}")


def cmd_quote(args: argparse.Namespace) -> None:
    catalog = Catalog.load(args.data_dir)
    products = ProductConfig.load(args.data_dir)
    lens = catalog.get(args.lens)
    if lens is None:
        print(f"Unknown lens_id: {args.lens}", file=sys.stderr)
        sys.exit(2)

    try:
        q = quote_order(
            args.lens,
            args.expires,
            products,
            right=not args.left_only,
            left=not args.right_only,
            right_box_count=args.right_boxes,
            left_box_count=args.left_boxes,
        )
    except (InvalidExpiryError, UnconfiguredSkuError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Lens:     {display_name(lens, q.sku)}")
    print(f"SKU:      {q.sku} ({q.quantity.duration_label})")
    print(f"Expiry:   {q.days_until_expiry} days -> {q.supply_months}-month supply")
    print(f"Per eye:  default={q.quantity.default_per_eye} max={q.quantity.max_per_eye}")
    print(f"Boxes:    right={q.right_box_count} left={q.left_box_count} total={q.box_count}")
    print(f"Price:    ${q.price.total_amount_cents / 100:.2f} "
          f"({q.price.box_count} x ${q.price.price_per_box_cents / 100:.2f})")


def _read_table(path: str) -> pd.DataFrame:
    if path.endswith((".xlsx", ".xls")):
        return pd.read_excel(path)
    return pd.read_csv(path)


def _write_table(df: pd.DataFrame, path: str) -> None:
    if path.endswith((".xlsx", ".xls")):
        df.to_excel(path, index=False)
    else:
        df.to_csv(path, index=False)


def cmd_batch(args: argparse.Namespace) -> None:
    """Resolve every row of a CSV/Excel file and write the outcomes."""
    log = structlog.get_logger()
    df = _read_table(args.input)
    if args.column not in df.columns:
        print(f"Column '{args.column}' not found. Available: {', '.join(map(str, df.columns))}")
        sys.exit(2)

    resolver = _build_resolver(args)
    log.info("batch_start", input=args.input, rows=len(df))

    def flag(row: pd.Series, column: str) -> bool:
        return column in row.index and pd.notna(row[column]) and bool(row[column])

    def number(row: pd.Series, column: str) -> float | None:
        if column in row.index and pd.notna(row[column]):
            return float(row[column])
        return None

    rows = []
    for _, row in df.iterrows():
        text = row[args.column]
        if pd.isna(text) or not str(text).strip():
            rows.append({"raw_text": None, "final_lens_id": None, "confidence": "low", "error": "empty"})
            continue
        result = resolver.resolve(
            str(text),
            has_cyl=flag(row, "has_cyl"),
            has_add=flag(row, "has_add") if "has_add" in row.index else None,
            base_curve=number(row, "bc"),
            diameter=number(row, "dia"),
        )
        lens = resolver.catalog.get(result.final_lens_id) if result.final_lens_id else None
        rows.append({
            "raw_text": str(text),
            "final_lens_id": result.final_lens_id,
            "label": lens.label if lens else None,
            "confidence": result.confidence,
            "hybrid_lens_id": result.hybrid_lens_id,
            "hybrid_score": result.hybrid_score,
            "ai_lens_id": result.ai_lens_id,
            "agreement": result.agreement,
            "candidate_count": len(result.candidate_ids),
        })

    df_out = pd.DataFrame(rows)
    _write_table(df_out, args.output)

    counts = df_out["confidence"].value_counts()
    parts = [f"{band}={int(counts.get(band, 0))}" for band in ("high", "medium", "low")]
    print(f"\nResults: {', '.join(parts)}")
    print(f"Saved to: {args.output}")


def cmd_audit_summary(args: argparse.Namespace) -> None:
    audits = JsonlAuditSink(args.audit_log).read_all()
    if not audits:
        print(f"No audit records in {args.audit_log}")
        return
    s = summarize(audits)
    print("--- Audit summary ---")
    print(f"Total:        {s['total']}")
    print(f"Resolved:     {s['resolved']}")
    print(f"Unresolved:   {s['unresolved']}")
    print(f"Hybrid only:  {s['hybrid_only']}")
    print(f"AI rescued:   {s['ai_rescued']}")
    print(f"Agreement:    {s['agreement']}")


def cmd_serve(args: argparse.Namespace) -> None:
    """Launch the HTTP API."""
    import uvicorn

    from lensmatch.server import create_app

    log = structlog.get_logger()
    resolver = _build_resolver(args)
    products = ProductConfig.load(args.data_dir)
    app = create_app(resolver, products)
    log.info("server_start", host=args.host, port=args.port, lenses=len(resolver.catalog))
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def main() -> None:
    # Parent parser with global options (inherited by all subcommands)
    parent_parser = argparse.ArgumentParser(add_help=False)
    parent_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Set logging level (default: WARNING)",
    )
    parent_parser.add_argument(
        "--no-gemini",
        action="store_true",
        help="Disable the Gemini fallback (deterministic only)",
    )
    parent_parser.add_argument(
        "--data-dir",
        default=None,
        help="Directory with lenses.json, colors.json and products.json",
    )
    parent_parser.add_argument(
        "--audit-log",
        default="localdata/resolver_audits.jsonl",
        help="Append-only audit file ('' to disable)",
    )

    parser = argparse.ArgumentParser(
        description="Contact lens resolution CLI",
        parents=[parent_parser],
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve_parser = subparsers.add_parser("resolve", parents=[parent_parser], help="Resolve text to a lens")
    resolve_parser.add_argument("text", help="Raw prescription text (e.g. OCR brand line)")
    resolve_parser.add_argument("--cyl", action="store_true", help="Prescription has cylinder (toric)")
    add_group = resolve_parser.add_mutually_exclusive_group()
    add_group.add_argument("--add", dest="add", action="store_true", default=None,
                           help="Prescription has ADD (multifocal)")
    add_group.add_argument("--no-add", dest="add", action="store_false",
                           help="Prescription has no ADD")
    resolve_parser.add_argument("--bc", type=float, default=None, help="Base curve hint")
    resolve_parser.add_argument("--dia", type=float, default=None, help="Diameter hint")
    resolve_parser.add_argument("--verbose", "-v", action="store_true", help="Show filter stages")
    resolve_parser.set_defaults(func=cmd_resolve)

    add_parser = subparsers.add_parser("add", parents=[parent_parser], help="Classify ADD tokens in text")
    add_parser.add_argument("text", help="Raw OCR text")
    add_parser.set_defaults(func=cmd_add)

    quote_parser = subparsers.add_parser("quote", parents=[parent_parser], help="Quote boxes and price")
    quote_parser.add_argument("--lens", required=True, help="Lens id (e.g. V001)")
    quote_parser.add_argument("--expires", required=True, help="Prescription expiry (YYYY-MM-DD)")
    quote_parser.add_argument("--right-boxes", type=int, default=None, help="Requested right-eye boxes")
    quote_parser.add_argument("--left-boxes", type=int, default=None, help="Requested left-eye boxes")
    eye_group = quote_parser.add_mutually_exclusive_group()
    eye_group.add_argument("--right-only", action="store_true", help="Right eye only")
    eye_group.add_argument("--left-only", action="store_true", help="Left eye only")
    quote_parser.set_defaults(func=cmd_quote)

    batch_parser = subparsers.add_parser("batch", parents=[parent_parser], help="Resolve a CSV/Excel file")
    batch_parser.add_argument("input", help="Input .csv or .xlsx")
    batch_parser.add_argument("--column", default="raw_text", help="Column with raw text (default: raw_text)")
    batch_parser.add_argument("--output", default="localdata/resolve_results.csv", help="Output file path")
    batch_parser.set_defaults(func=cmd_batch)

    summary_parser = subparsers.add_parser("audit-summary", parents=[parent_parser], help="Summarize the audit log")
    summary_parser.set_defaults(func=cmd_audit_summary)

    serve_parser = subparsers.add_parser("serve", parents=[parent_parser], help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8765, help="Server port (default: 8765)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args()
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
