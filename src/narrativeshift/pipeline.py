"""Pipeline orchestration: wires search → dedupe → classify → aggregate → record → report."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterable
from datetime import UTC, datetime

from narrativeshift import config
from narrativeshift.aggregate import aggregate
from narrativeshift.bird import BirdSource
from narrativeshift.classify import Classifier
from narrativeshift.dedupe import dedupe
from narrativeshift.emailer import send_alert
from narrativeshift.ledger import NarrativeLedger, build_record
from narrativeshift.lexicon import load_lexicon
from narrativeshift.models import NarrativeMetrics, Post
from narrativeshift.report import write_report
from narrativeshift.sources import FixtureSource, PostSource
from narrativeshift.subscriptions import SubscriptionBook, SubscriptionError
from narrativeshift.x_client import XClient

logger = logging.getLogger(__name__)

# Exact-phrase searches, most specific first.
QUERY_TEMPLATES: tuple[str, ...] = (
    "leaving {platform}",
    "{platform} alternative",
    "quit {platform}",
    "{platform} vs",
    "moving from {platform}",
    "{platform} migration",
    "{platform} exodus",
)

# Upper bound on source calls per platform scan.
MAX_QUERIES = 3


def setup_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )


def build_queries(platform: str) -> list[str]:
    """Render every query template for *platform* as a quoted phrase."""
    return [f'"{t.format(platform=platform)}"' for t in QUERY_TEMPLATES]


def scan(
    platform: str,
    query_limit: int = 100,
    *,
    source: PostSource,
    classifier: Classifier | None = None,
    max_queries: int = MAX_QUERIES,
) -> NarrativeMetrics:
    """Search, dedupe and aggregate migration chatter about *platform*.

    A failing query is logged and contributes nothing; if every query fails
    the result is the empty-batch metrics.
    """
    queries = build_queries(platform)[: max(min(max_queries, MAX_QUERIES), 1)]
    per_query = max(query_limit // len(queries), 1)

    batches: list[list[Post]] = []
    for query in queries:
        try:
            batches.append(list(source.search(query, per_query)))
        except Exception:
            logger.exception("Search failed for %s", query)
            batches.append([])

    posts = dedupe(batches)[: max(query_limit, 0)]
    logger.info("  [%s] %d unique posts from %d queries", platform, len(posts), len(queries))
    return aggregate(posts, classifier=classifier, platform=platform)


def scan_platforms(
    platforms: Iterable[str],
    query_limit: int = 100,
    *,
    source: PostSource,
    classifier: Classifier | None = None,
) -> dict[str, NarrativeMetrics]:
    """Scan each platform independently, in the order given."""
    return {
        platform: scan(platform, query_limit, source=source, classifier=classifier)
        for platform in platforms
    }


def build_source(kind: str = "auto") -> PostSource:
    """Pick the post source named by *kind* (``auto``, ``x``, ``bird`` or ``fixture``)."""
    kind = kind.lower()
    if kind == "auto":
        if config.X_BEARER_TOKEN:
            kind = "x"
        elif config.TWITTER_AUTH_TOKEN and config.TWITTER_CT0:
            kind = "bird"
        else:
            logger.warning("No X credentials configured; using fixture posts.")
            kind = "fixture"

    if kind == "x":
        return XClient(bearer_token=config.X_BEARER_TOKEN)
    if kind == "bird":
        return BirdSource(
            auth_token=config.TWITTER_AUTH_TOKEN,
            ct0=config.TWITTER_CT0,
            binary=config.BIRD_BIN,
        )
    if kind == "fixture":
        return FixtureSource()
    raise ValueError(f"Unknown post source: {kind!r}")


def run_scan(
    platforms: list[str],
    query_limit: int = config.QUERY_LIMIT,
    source_kind: str = config.SOURCE,
    record: bool = False,
    dry_run: bool = False,
) -> dict[str, NarrativeMetrics]:
    """Execute a full scan for *platforms* and return per-platform metrics."""
    logger.info("=== narrativeshift scan start [%s] ===", ", ".join(platforms))

    source = build_source(source_kind)
    classifier = Classifier(load_lexicon(config.LEXICON_PATH))
    threshold = config.HIGH_SCORE_THRESHOLD

    results = scan_platforms(platforms, query_limit, source=source, classifier=classifier)

    for platform, m in results.items():
        logger.info(
            "  [%s] score=%.2f volume=%d velocity=%.1f/h top=%s",
            platform,
            m.score,
            m.volume,
            m.velocity,
            m.top_alternative or "N/A",
        )
        if m.is_high_migration(threshold):
            logger.warning("  [%s] HIGH MIGRATION NARRATIVE DETECTED (%.2f)", platform, m.score)

    if dry_run:
        logger.info("Dry-run mode; skipping ledger, report and alerts.")
        return results

    paths = config.data_paths()
    now = datetime.now(UTC)

    out_path = write_report(results, paths["output_dir"], generated_at=now, threshold=threshold)

    flagged = [p for p, m in results.items() if m.is_high_migration(threshold)]
    if flagged:
        _alert(flagged, out_path.read_text(encoding="utf-8"), now)

    if record:
        # All snapshots are validated before the first write.
        pending = [
            build_record(m.score, platform, m.top_alternative or "", now.isoformat())
            for platform, m in results.items()
            if m.volume > 0
        ]
        NarrativeLedger(paths["ledger"]).append(pending)

    logger.info("=== narrativeshift scan done: %s ===", out_path)
    return results


def _alert(flagged: list[str], body_text: str, now: datetime) -> None:
    """Email the report to configured recipients while anyone is subscribed."""
    if not config.email_enabled():
        logger.info(
            "Email not configured; skipping alert. "
            "Set SMTP_USERNAME, SMTP_PASSWORD, EMAIL_TO to enable."
        )
        return

    try:
        subscribers = SubscriptionBook(config.data_paths()["subscriptions"]).active_subscribers(now)
    except SubscriptionError:
        logger.exception("Cannot read subscriptions; skipping alert")
        return
    if not subscribers:
        logger.info("No active subscriptions; skipping alert for %s.", ", ".join(flagged))
        return

    subject = f"NARRATIVESHIFT ALERT: {', '.join(flagged)} at {now.strftime('%Y-%m-%d %H:%M UTC')}"
    try:
        send_alert(
            smtp_host=config.SMTP_HOST,
            smtp_port=config.SMTP_PORT,
            username=config.SMTP_USERNAME,
            password=config.SMTP_PASSWORD,
            to_addrs=config.EMAIL_TO,
            subject=subject,
            body_text=body_text,
        )
    except Exception:
        logger.exception("Failed to send alert email")
    else:
        logger.info("Alert sent for %d active subscribers", len(subscribers))
