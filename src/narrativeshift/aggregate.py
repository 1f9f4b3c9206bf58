"""Batch aggregation: turn classified posts into a migration score."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from datetime import UTC, datetime

from narrativeshift.classify import Classifier
from narrativeshift.models import NarrativeMetrics, Post, SentimentBreakdown

logger = logging.getLogger(__name__)

# ── Score weights (sum to 1) ───────────────────────────────────────────────
_W_INTENT = 0.4
_W_SENTIMENT = 0.3
_W_VELOCITY = 0.3

_VELOCITY_CAP = 10.0  # posts/hour at which the velocity term saturates
_POLARITY_BAND = 0.2

# Classic X/Twitter timestamp, e.g. "Sat Feb 14 10:00:00 +0000 2026".
_CLASSIC_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def _parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Return an aware datetime, or None when *value* cannot be parsed."""
    if value is None:
        return None
    if isinstance(value, str):
        raw = value.strip()
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            try:
                parsed = datetime.strptime(raw, _CLASSIC_FORMAT)
            except ValueError:
                return None
    else:
        parsed = value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _velocity(posts: Sequence[Post]) -> float:
    """Posts per hour across the batch's time span.

    A batch where no post carries a timestamp counts as one hour's worth of
    posts; fewer than two parseable timestamps otherwise gives zero.
    """
    volume = len(posts)
    if all(p.created_at is None for p in posts):
        return float(volume)

    stamps = [ts for ts in (_parse_timestamp(p.created_at) for p in posts) if ts is not None]
    if len(stamps) < 2:
        return 0.0

    hours = (max(stamps) - min(stamps)).total_seconds() / 3600
    return volume / hours if hours > 0 else float(volume)


def aggregate(
    posts: Sequence[Post],
    classifier: Classifier | None = None,
    platform: str = "",
) -> NarrativeMetrics:
    """Compute :class:`NarrativeMetrics` for one deduplicated batch.

    An empty batch yields zero-valued metrics rather than an error.
    """
    if not posts:
        logger.info("Aggregate [%s]: empty batch", platform or "-")
        return NarrativeMetrics(platform=platform)

    classifier = classifier or Classifier()
    results = [classifier.classify(p.text) for p in posts]
    volume = len(posts)

    migration = [r for r in results if r.migration_intent]
    avg_sentiment = sum(r.polarity for r in results) / volume

    positive = sum(1 for r in results if r.polarity > _POLARITY_BAND)
    negative = sum(1 for r in results if r.polarity < -_POLARITY_BAND)
    breakdown = SentimentBreakdown(
        positive=positive,
        negative=negative,
        neutral=volume - positive - negative,
    )

    # most_common keeps first-seen order on ties.
    mentions = Counter(r.target_platform for r in results if r.target_platform)
    top_alternative = mentions.most_common(1)[0][0] if mentions else None

    velocity = _velocity(posts)

    score = (
        (len(migration) / volume) * _W_INTENT
        + abs(avg_sentiment) * _W_SENTIMENT
        + min(velocity / _VELOCITY_CAP, 1.0) * _W_VELOCITY
    )
    score = max(0.0, min(1.0, score))

    logger.info(
        "Aggregate [%s]: %d posts, %d migration, score=%.2f, velocity=%.1f/h, top=%s",
        platform or "-",
        volume,
        len(migration),
        score,
        velocity,
        top_alternative or "n/a",
    )
    return NarrativeMetrics(
        platform=platform,
        score=score,
        volume=volume,
        velocity=velocity,
        top_alternative=top_alternative,
        sentiment_breakdown=breakdown,
    )
