"""ADD-power token detection over raw OCR text."""

from __future__ import annotations

import re

from lensmatch.types import AddState

# +2.00, 1.50, -0.75, +2.00 N, +2.00D. Not part of a longer number.
NUMERIC_ADD = re.compile(r"(?<![\d.])[+-]?\d\.\d{2}(?:\s?[DN])?\b", re.IGNORECASE)

# Severity words. Whole words only, so "MEDIUM" or "HIGHLY" do not count.
CATEGORICAL_ADD = re.compile(r"\b(?:LOW|MED|HIGH)\b", re.IGNORECASE)


def classify_add(raw_text: str) -> AddState:
    """Decide whether raw text carries one usable ADD token.

    Zero tokens: no ADD. Exactly one: ADD present. More than one is treated as
    placeholder padding or OCR noise, so the result is ambiguous and reports
    no ADD rather than gating the multifocal filter on unreliable evidence.
    """
    tokens = [m.group(0) for m in NUMERIC_ADD.finditer(raw_text)]
    tokens.extend(m.group(0) for m in CATEGORICAL_ADD.finditer(raw_text))

    if len(tokens) > 1:
        return AddState(has_add=False, is_ambiguous=True, tokens=tuple(tokens))
    if len(tokens) == 1:
        return AddState(has_add=True, is_ambiguous=False, tokens=tuple(tokens))
    return AddState(has_add=False, is_ambiguous=False)
