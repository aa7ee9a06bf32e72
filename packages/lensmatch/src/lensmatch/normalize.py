"""Text normalization shared by every matching stage."""

from __future__ import annotations

import re
import unicodedata

_SEPARATORS = re.compile(r"[^a-z0-9]+")


def normalize(text: str) -> str:
    """Lowercase, treat anything outside [a-z0-9] as a separator, collapse whitespace.

    NFKC folds full-width and compatibility forms first, so OCR output such
    as "Ｏａｓｙｓ" or "1‐Day" lands on plain ASCII. The output is itself a
    fixed point: normalize(normalize(x)) == normalize(x).
    """
    s = unicodedata.normalize("NFKC", text).lower()
    return _SEPARATORS.sub(" ", s).strip()


def tokenize(text: str) -> list[str]:
    normalized = normalize(text)
    return normalized.split(" ") if normalized else []


def unique_tokens(tokens: list[str]) -> list[str]:
    """Drop repeated tokens, keeping first-seen order."""
    return list(dict.fromkeys(tokens))
