"""Post source contract plus the fixture-backed implementation."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from narrativeshift.models import Post, PostMetrics

logger = logging.getLogger(__name__)


class SourceQueryError(Exception):
    """Raised when a single search query fails (transport or parse error)."""


class PostSource(Protocol):
    def search(self, query: str, limit: int) -> list[Post]:
        """Return at most *limit* posts matching *query*."""
        ...


DEMO_POSTS: tuple[Post, ...] = (
    Post(
        post_id="1",
        text=(
            "Discord forcing biometric KYC is insane. "
            "Moving my entire community to Telegram tonight."
        ),
        author="crypto_whale",
        metrics=PostMetrics(like_count=420, repost_count=89),
    ),
    Post(
        post_id="2",
        text=(
            "After Discord's new policy, I'm done. "
            "Telegram is the only logical choice for privacy."
        ),
        author="privacy_advocate",
        metrics=PostMetrics(like_count=234, repost_count=56),
    ),
    Post(
        post_id="3",
        text=(
            "Discord alternatives thread: Why I'm migrating to Telegram "
            "and you should too."
        ),
        author="tech_lead",
        metrics=PostMetrics(like_count=1200, repost_count=340),
    ),
)


class FixtureSource:
    """Serves a fixed post set for every query; for demos and tests."""

    def __init__(self, posts: Sequence[Post] = DEMO_POSTS) -> None:
        self._posts = list(posts)

    def search(self, query: str, limit: int) -> list[Post]:
        items = self._posts[: max(limit, 0)]
        logger.info("Fixture source: %d posts for query: %s", len(items), query)
        return items
