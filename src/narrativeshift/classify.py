"""Lexical scoring of a single post: polarity, magnitude, migration intent."""

from __future__ import annotations

from narrativeshift.lexicon import DEFAULT_LEXICON, Lexicon
from narrativeshift.models import Classification

# ── Weights ────────────────────────────────────────────────────────────────
_WORDS_PER_UNIT = 0.1  # long posts dilute each lexicon hit
_MAGNITUDE_HITS = 5  # hits needed for full magnitude


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class Classifier:
    """Substring classifier over a curated :class:`Lexicon`."""

    def __init__(self, lexicon: Lexicon = DEFAULT_LEXICON) -> None:
        self._lexicon = lexicon

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    def classify(self, text: str) -> Classification:
        """Score *text*. Never raises; empty text scores as neutral."""
        text_lower = text.lower()
        lex = self._lexicon

        migration_intent = any(term in text_lower for term in lex.migration)
        positive = sum(1 for term in lex.positive if term in text_lower)
        negative = sum(1 for term in lex.negative if term in text_lower)

        total_words = max(len(text.split()), 1)
        polarity = (positive - negative) / max(total_words * _WORDS_PER_UNIT, 1)

        target = next((p for p in lex.platforms if p in text_lower), None)

        return Classification(
            polarity=_clamp(polarity, -1.0, 1.0),
            magnitude=_clamp((positive + negative) / _MAGNITUDE_HITS, 0.0, 1.0),
            migration_intent=migration_intent,
            target_platform=target,
        )


_default = Classifier()


def classify(text: str) -> Classification:
    """Classify *text* with the default lexicon."""
    return _default.classify(text)
