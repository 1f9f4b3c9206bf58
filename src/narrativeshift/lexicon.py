"""Curated word lists driving the migration classifier."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)


class Lexicon(BaseModel):
    """Word lists for sentiment, migration intent and destination platforms.

    ``platforms`` is ordered: the classifier reports the first one found.
    """

    model_config = ConfigDict(frozen=True)

    positive: tuple[str, ...]
    negative: tuple[str, ...]
    migration: tuple[str, ...]
    platforms: tuple[str, ...]

    @field_validator("positive", "negative", "migration", "platforms", mode="before")
    @classmethod
    def _normalise(cls, value: Any) -> tuple[str, ...]:
        terms = [str(v).strip().lower() for v in (value or [])]
        # Keep order, drop blanks and repeats.
        return tuple(dict.fromkeys(t for t in terms if t))


DEFAULT_LEXICON = Lexicon(
    positive=[
        "moving", "migrated", "switching", "better", "best", "love", "prefer",
        "join", "coming", "excited", "recommend", "upgrade", "improved",
    ],
    negative=[
        "hate", "terrible", "awful", "quit", "leaving", "done", "never",
        "worst", "horrible", "disgusting", "privacy", "kyc", "biometric",
    ],
    migration=[
        "moving", "migrate", "migration", "switch", "switching", "quit",
        "leaving", "left", "exodus", "alternative", "instead",
    ],
    platforms=["telegram", "bluesky", "mastodon", "signal", "matrix", "guilded"],
)


def load_lexicon(path: str | Path) -> Lexicon:
    """Parse a lexicon YAML file; keys it omits keep their default lists."""
    p = Path(path)
    if not p.exists():
        logger.warning("Lexicon file not found, using defaults: %s", p)
        return DEFAULT_LEXICON

    with open(p) as fh:
        cfg: dict[str, Any] = yaml.safe_load(fh) or {}

    merged = DEFAULT_LEXICON.model_dump()
    for key in ("positive", "negative", "migration", "platforms"):
        if cfg.get(key):
            merged[key] = cfg[key]

    lexicon = Lexicon(**merged)
    logger.debug(
        "Lexicon %s: %d positive, %d negative, %d migration, %d platforms",
        p,
        len(lexicon.positive),
        len(lexicon.negative),
        len(lexicon.migration),
        len(lexicon.platforms),
    )
    return lexicon
