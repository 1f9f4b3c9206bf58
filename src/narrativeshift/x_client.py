"""Minimal X API v2 Recent Search client (read-only)."""

from __future__ import annotations

import logging
import time
from typing import Any

import requests

from narrativeshift.models import Post, PostMetrics
from narrativeshift.sources import SourceQueryError

logger = logging.getLogger(__name__)

_RECENT_SEARCH_URL = "https://api.twitter.com/2/tweets/search/recent"

# Fields we always request.
_TWEET_FIELDS = "created_at,public_metrics,author_id"
_EXPANSIONS = "author_id"
_USER_FIELDS = "username"

# Recent Search accepts max_results in [10, 100].
_MIN_RESULTS = 10
_MAX_RESULTS = 100


class XClientError(SourceQueryError):
    """Raised when the X API returns an unexpected response."""


class XClient:
    """Thin wrapper around ``GET /2/tweets/search/recent``."""

    def __init__(self, bearer_token: str, timeout: float = 30) -> None:
        if not bearer_token:
            raise ValueError("X_BEARER_TOKEN is required but was empty.")
        self._timeout = timeout
        self._session = requests.Session()
        self._session.headers.update({"Authorization": f"Bearer {bearer_token}"})

    # ── public ──────────────────────────────────────────────────────────
    def search(self, query: str, limit: int) -> list[Post]:
        """Execute a single Recent Search query and return at most *limit* posts."""
        params: dict[str, Any] = {
            "query": query,
            "max_results": min(max(limit, _MIN_RESULTS), _MAX_RESULTS),
            "tweet.fields": _TWEET_FIELDS,
            "expansions": _EXPANSIONS,
            "user.fields": _USER_FIELDS,
        }

        data = self._get(params)
        tweets_raw: list[dict[str, Any]] = data.get("data", [])
        if not tweets_raw:
            logger.info("No results for query: %s", query)
            return []

        # Build author-id → username map from expansions
        includes = data.get("includes", {})
        users: list[dict[str, Any]] = includes.get("users", [])
        author_map: dict[str, str] = {u["id"]: u.get("username", "") for u in users}

        posts: list[Post] = []
        for raw in tweets_raw[: max(limit, 0)]:
            pm = raw.get("public_metrics", {})
            posts.append(
                Post(
                    post_id=str(raw["id"]),
                    text=raw.get("text", ""),
                    author=author_map.get(str(raw.get("author_id", "")), ""),
                    created_at=raw.get("created_at"),
                    metrics=PostMetrics(
                        like_count=pm.get("like_count", 0),
                        repost_count=pm.get("retweet_count", 0),
                    ),
                )
            )

        logger.info("Fetched %d posts for query: %s", len(posts), query)
        return posts

    # ── private ─────────────────────────────────────────────────────────
    def _get(self, params: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = self._session.get(_RECENT_SEARCH_URL, params=params, timeout=self._timeout)
            if resp.status_code == 429:
                retry_after = int(resp.headers.get("Retry-After", "60"))
                logger.warning("Rate-limited; sleeping %ds", retry_after)
                time.sleep(retry_after)
                resp = self._session.get(
                    _RECENT_SEARCH_URL, params=params, timeout=self._timeout
                )
        except requests.RequestException as exc:
            raise XClientError(f"X API request failed: {exc}") from exc
        if resp.status_code != 200:
            raise XClientError(
                f"X API returned {resp.status_code}: {resp.text[:500]}"
            )
        try:
            return resp.json()  # type: ignore[no-any-return]
        except ValueError as exc:
            raise XClientError(f"X API returned invalid JSON: {exc}") from exc
