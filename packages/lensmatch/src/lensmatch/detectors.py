"""Named detector rules for manufacturer and daily-wear intent.

Rules run against normalized text (see lensmatch.normalize), so hyphens and
punctuation are already spaces: "1-Day" arrives as "1 day".
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from lensmatch.normalize import normalize


@dataclass(frozen=True)
class DetectorRule:
    name: str
    pattern: re.Pattern[str]
    tag: str

    def matches(self, normalized_text: str) -> bool:
        return self.pattern.search(normalized_text) is not None


def _rule(name: str, pattern: str, tag: str) -> DetectorRule:
    return DetectorRule(name=name, pattern=re.compile(pattern), tag=tag)


# Tag is the lens_id prefix of the manufacturer. Order is priority: the first
# rule that fires wins. Only conclusive product-line names belong here; "dailies"
# is a wear-schedule word as much as an Alcon brand and is left to DAILY_RULES.
MANUFACTURER_RULES: tuple[DetectorRule, ...] = (
    _rule("acuvue", r"\bacuvue\b", "V"),
    _rule("oasys", r"\boasys\b", "V"),
    _rule("vita", r"\bvita\b", "V"),
    _rule("alcon", r"\balcon\b", "A"),
    _rule("total1", r"\btotal ?1\b", "A"),
    _rule("total30", r"\btotal ?30\b", "A"),
    _rule("air_optix", r"\bair ?optix\b", "A"),
    _rule("precision1", r"\bprecision ?1\b", "A"),
    _rule("bausch", r"\bbausch\b", "BL"),
    _rule("purevision", r"\bpure ?vision ?2?\b", "BL"),
    _rule("biotrue", r"\bbiotrue\b", "BL"),
    _rule("infuse", r"\binfuse\b", "BL"),
    _rule("soflens", r"\bsof ?lens\b", "BL"),
    _rule("coopervision", r"\bcooper ?vision\b", "CV"),
    _rule("biofinity", r"\bbiofinity\b", "CV"),
    _rule("myday", r"\bmy ?day\b", "CV"),
    _rule("clariti", r"\bclariti\b", "CV"),
    _rule("proclear", r"\bproclear\b", "CV"),
    _rule("avaira", r"\bavaira\b", "CV"),
)

# Explicit daily-wear wording, plus product lines that are only sold as daily
# disposables. Absence of these cues never implies daily.
DAILY_RULES: tuple[DetectorRule, ...] = (
    _rule("one_day", r"\b(?:1|one) ?day\b", "daily"),
    _rule("daily", r"\bdaily\b", "daily"),
    _rule("dailies", r"\bdailies\b", "daily"),
    _rule("oasys_max", r"\boasys ?max\b", "daily"),
    _rule("moist", r"\bmoist\b", "daily"),
    _rule("total1", r"\btotal ?1\b", "daily"),
    _rule("precision1", r"\bprecision ?1\b", "daily"),
    _rule("myday", r"\bmy ?day\b", "daily"),
    _rule("clariti", r"\bclariti\b", "daily"),
    _rule("infuse", r"\binfuse\b", "daily"),
)


def first_match(text: str, rules: tuple[DetectorRule, ...]) -> DetectorRule | None:
    normalized = normalize(text)
    for rule in rules:
        if rule.matches(normalized):
            return rule
    return None


def detect_manufacturer(text: str) -> str | None:
    """Return the manufacturer lens_id prefix named in text, if any."""
    rule = first_match(text, MANUFACTURER_RULES)
    return rule.tag if rule else None


def signals_daily(text: str) -> bool:
    return first_match(text, DAILY_RULES) is not None
