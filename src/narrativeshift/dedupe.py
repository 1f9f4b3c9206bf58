"""Deduplication: merge per-query batches into unique posts."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from narrativeshift.models import Post

logger = logging.getLogger(__name__)


def dedupe(batches: Iterable[Iterable[Post]]) -> list[Post]:
    """Concatenate *batches* and keep the first post seen for each ID."""
    seen: set[str] = set()
    unique: list[Post] = []
    total = 0
    for batch in batches:
        for post in batch:
            total += 1
            if post.post_id in seen:
                continue
            seen.add(post.post_id)
            unique.append(post)
    logger.info(
        "Dedupe: %d total → %d unique (filtered %d duplicates)",
        total,
        len(unique),
        total - len(unique),
    )
    return unique
