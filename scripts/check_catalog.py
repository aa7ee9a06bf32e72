"""Sanity checks over the bundled catalog and product configuration.

Reports duplicate labels (the AI fallback cannot tell them apart), lenses with
no SKU mapping, and lenses that do not resolve to themselves from their own
label.
"""

import pandas as pd

from lensmatch import Catalog, LensResolver, ProductConfig, UnconfiguredSkuError

catalog = Catalog.load()
products = ProductConfig.load()
lenses = pd.DataFrame(
    [
        {"lens_id": lens.lens_id, "label": lens.label, "toric": lens.toric, "multifocal": lens.multifocal}
        for lens in catalog
    ]
)

# --- Duplicate labels ---
labels = lenses["label"].str.lower()
dupes = lenses[labels.duplicated(keep=False)].sort_values("label")

print("=== Duplicate labels ===")
if dupes.empty:
    print("  No duplicates found.")
else:
    for label, group in dupes.groupby("label"):
        print(f"  {label}: {', '.join(group['lens_id'])}")

print()

# --- Lenses without a default SKU ---
print("=== Lenses without a SKU ===")
missing = []
for lens_id in lenses["lens_id"]:
    try:
        products.default_sku(lens_id)
    except UnconfiguredSkuError:
        missing.append(lens_id)
print(f"  {', '.join(missing) if missing else 'None.'}")

print()

# --- Self resolution ---
resolver = LensResolver(catalog)
rows = []
for lens in catalog:
    result = resolver.resolve(lens.label, has_cyl=lens.toric, has_add=lens.multifocal)
    rows.append({
        "lens_id": lens.lens_id,
        "label": lens.label,
        "resolved": result.final_lens_id,
        "confidence": result.confidence,
        "score": result.hybrid_score,
    })
results = pd.DataFrame(rows)
misses = results[results["resolved"] != results["lens_id"]]

print("=== Self resolution ===")
print(results["confidence"].value_counts().to_string())
if misses.empty:
    print("  Every lens resolves to itself.")
else:
    print(f"\n  {len(misses)} lenses do not resolve to themselves:")
    for _, r in misses.iterrows():
        print(f"  {r['lens_id']:<5} {r['label']:<45} -> {r['resolved'] or '-'} ({r['confidence']})")
