"""AI disambiguation among a short list of lens candidates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import structlog

from lensmatch.config import FallbackConfig
from lensmatch.types import LensProduct

log = structlog.get_logger()

NO_MATCH = "none"


class LLMProvider(Protocol):
    """Protocol for text classifiers (e.g. Gemini)."""

    def query(self, prompt: str) -> str: ...


@dataclass(frozen=True)
class Choice:
    lens_id: str
    label: str


def to_choices(candidates: Sequence[LensProduct]) -> list[Choice]:
    return [Choice(lens_id=lens.lens_id, label=lens.label) for lens in candidates]


class LensDisambiguator:
    """Asks a language model to pick one label from an enumerated list.

    The reply is trusted only when it equals one of the supplied labels; there
    is no partial or fuzzy acceptance.
    """

    def __init__(self, config: FallbackConfig, provider: LLMProvider | None = None) -> None:
        self.config = config
        self.provider = provider

    def is_eligible(self, candidates: Sequence[LensProduct]) -> bool:
        if not self.config.enabled or self.provider is None:
            return False
        if not candidates:
            return False
        # Lists above the cap are skipped, not split into batches
        return len(candidates) <= self.config.max_candidates

    def choose(self, raw_text: str, candidates: Sequence[LensProduct]) -> str | None:
        """Return the chosen lens_id, or None on no match, bad output or failure."""
        if not self.is_eligible(candidates):
            log.debug(
                "fallback_skipped",
                candidate_count=len(candidates),
                max_candidates=self.config.max_candidates,
                has_provider=self.provider is not None,
            )
            return None

        choices = to_choices(candidates)
        prompt = build_prompt(raw_text, choices)

        try:
            raw_reply = self.provider.query(prompt)
        except Exception as e:
            log.warning("fallback_call_failed", error=str(e))
            return None

        lens_id = parse_reply(raw_reply, choices)
        log.info(
            "fallback_reply",
            reply=(raw_reply or "").strip()[:120],
            lens_id=lens_id,
            candidate_count=len(choices),
        )
        return lens_id


def build_prompt(raw_text: str, choices: Sequence[Choice]) -> str:
    numbered = "\n".join(f"{i}. {c.label}" for i, c in enumerate(choices, start=1))
    return (
        "You are matching text read from a contact lens prescription to a product.\n\n"
        f'OCR Text:\n"{raw_text}"\n\n'
        f"Candidates:\n{numbered}\n\n"
        "Select the exact matching candidate label.\n"
        f'If none match, return "{NO_MATCH}".\n'
        "Return only the label, nothing else."
    )


def parse_reply(reply: str | None, choices: Sequence[Choice]) -> str | None:
    """Map a reply back to a lens_id by exact, case-insensitive label equality."""
    if not reply:
        return None
    answer = reply.strip().lower()
    if not answer or answer == NO_MATCH:
        return None

    matched = [c for c in choices if c.label.lower() == answer]
    if len(matched) != 1:
        # Zero is a paraphrase or garbage; more than one means duplicate labels
        return None
    return matched[0].lens_id
