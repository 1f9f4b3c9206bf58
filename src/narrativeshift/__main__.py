"""CLI entry-point: ``python -m narrativeshift scan|store|history|subscribe|status|cancel``."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime

from pydantic import ValidationError

from narrativeshift import config
from narrativeshift.ledger import LedgerError, NarrativeLedger
from narrativeshift.pipeline import run_scan, setup_logging
from narrativeshift.subscriptions import SubscriptionBook, SubscriptionError

logger = logging.getLogger(__name__)


def _split_platforms(raw: str) -> list[str]:
    return [p.strip().lower() for p in raw.split(",") if p.strip()]


def _store(score: float, platform: str, alternative: str) -> None:
    try:
        ledger = NarrativeLedger(config.data_paths()["ledger"])
        record_id = ledger.record(score, platform, alternative, datetime.now(UTC).isoformat())
    except ValidationError as exc:
        logger.error("Invalid narrative record: %s", exc)
        sys.exit(1)
    except LedgerError:
        logger.exception("Failed to store narrative")
        sys.exit(1)
    print(f"Stored {record_id}: {platform} → {alternative} ({score:.2f})")


def _history(platform: str, limit: int) -> None:
    try:
        records = NarrativeLedger(config.data_paths()["ledger"]).history(platform, limit)
    except LedgerError:
        logger.exception("Failed to fetch history")
        sys.exit(1)
    print(f"Found {len(records)} records")
    for rec in records:
        print(f"{rec.timestamp[:10]} | {rec.score:.2f} | {rec.platform} → {rec.alternative or 'N/A'}")


def _subscribe(subscriber: str, amount: float, duration: int) -> None:
    try:
        book = SubscriptionBook(config.data_paths()["subscriptions"])
        sub = book.subscribe(subscriber, amount, duration)
    except SubscriptionError as exc:
        logger.error("Subscription failed: %s", exc)
        sys.exit(1)
    print(f"Subscription {sub.subscription_id} active until {sub.expires_at.isoformat()}")


def _status(subscriber: str) -> None:
    try:
        active = SubscriptionBook(config.data_paths()["subscriptions"]).is_active(subscriber)
    except SubscriptionError as exc:
        logger.error("Status check failed: %s", exc)
        sys.exit(1)
    print(f"{subscriber}: {'active' if active else 'inactive'}")


def _cancel(subscription_id: str, subscriber: str) -> None:
    try:
        book = SubscriptionBook(config.data_paths()["subscriptions"])
        sub = book.cancel(subscription_id, subscriber)
    except SubscriptionError as exc:
        logger.error("Cancellation failed: %s", exc)
        sys.exit(1)
    print(f"Subscription {sub.subscription_id} cancelled")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="narrativeshift",
        description="Detect platform migration narratives.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── scan ───────────────────────────────────────────────────────────
    scan_parser = sub.add_parser("scan", help="Scan for migration narratives.")
    scan_parser.add_argument(
        "-p", "--platforms",
        default=",".join(config.DEFAULT_PLATFORMS),
        help="Comma-separated platforms to monitor.",
    )
    scan_parser.add_argument(
        "-l", "--limit", type=int, default=config.QUERY_LIMIT,
        help="Max posts to analyse per platform.",
    )
    scan_parser.add_argument(
        "--source",
        choices=["auto", "x", "bird", "fixture"],
        default=config.SOURCE,
        help="Where posts come from (default: auto).",
    )
    scan_parser.add_argument(
        "--record", action="store_true",
        help="Append each non-empty result to the ledger.",
    )
    scan_parser.add_argument(
        "--dry-run", action="store_true",
        help="Scan and log only; skip ledger, report and alerts.",
    )

    # ── store ──────────────────────────────────────────────────────────
    store_parser = sub.add_parser("store", help="Record a narrative snapshot.")
    store_parser.add_argument("-s", "--score", type=float, default=0.5)
    store_parser.add_argument("-p", "--platform", default="discord")
    store_parser.add_argument("-a", "--alternative", default="telegram")

    # ── history ────────────────────────────────────────────────────────
    history_parser = sub.add_parser("history", help="Show recorded narratives.")
    history_parser.add_argument("-p", "--platform", default="all")
    history_parser.add_argument("-l", "--limit", type=int, default=10)

    # ── subscribe / status / cancel ────────────────────────────────────
    subscribe_parser = sub.add_parser("subscribe", help="Subscribe to migration alerts.")
    subscribe_parser.add_argument("--subscriber", required=True)
    subscribe_parser.add_argument("-a", "--amount", type=float, default=0.1, help="Payment in SOL.")
    subscribe_parser.add_argument("-d", "--duration", type=int, default=30, help="Days.")

    status_parser = sub.add_parser("status", help="Check whether a subscriber is active.")
    status_parser.add_argument("--subscriber", required=True)

    cancel_parser = sub.add_parser("cancel", help="Cancel a subscription.")
    cancel_parser.add_argument("--subscription-id", required=True)
    cancel_parser.add_argument("--subscriber", required=True)

    args = parser.parse_args(argv)
    setup_logging()

    if args.command == "scan":
        try:
            run_scan(
                _split_platforms(args.platforms),
                query_limit=args.limit,
                source_kind=args.source,
                record=args.record,
                dry_run=args.dry_run,
            )
        except ValidationError as exc:
            logger.error("Invalid narrative record: %s", exc)
            sys.exit(1)
        except LedgerError:
            logger.exception("Failed to record scan results")
            sys.exit(1)
    elif args.command == "store":
        _store(args.score, args.platform, args.alternative)
    elif args.command == "history":
        _history(args.platform, args.limit)
    elif args.command == "subscribe":
        _subscribe(args.subscriber, args.amount, args.duration)
    elif args.command == "status":
        _status(args.subscriber)
    elif args.command == "cancel":
        _cancel(args.subscription_id, args.subscriber)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
