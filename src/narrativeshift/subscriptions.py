"""Alert subscriptions kept in a local SQLite book.

Payment settlement happens elsewhere; this module only records who paid for
how long and answers whether a subscriber is currently entitled to alerts.
"""

from __future__ import annotations

import logging
import secrets
import sqlite3
from datetime import UTC, datetime, timedelta
from pathlib import Path

from narrativeshift.models import Subscription

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS subscriptions (
    subscription_id TEXT PRIMARY KEY,
    subscriber      TEXT NOT NULL,
    amount          REAL NOT NULL,
    duration_days   INTEGER NOT NULL,
    starts_at       TEXT NOT NULL,
    expires_at      TEXT NOT NULL,
    active          INTEGER NOT NULL DEFAULT 1
);
"""

# ── Pricing (in SOL) ───────────────────────────────────────────────────────
_MONTHLY_PRICE = 0.1
_LONG_TERM_PRICE = 0.3
_MONTHLY_MAX_DAYS = 30


class SubscriptionError(Exception):
    """Raised for invalid subscription requests or storage failures."""


def price_for(duration_days: int) -> float:
    """Price of a subscription lasting *duration_days*."""
    return _MONTHLY_PRICE if duration_days <= _MONTHLY_MAX_DAYS else _LONG_TERM_PRICE


class SubscriptionBook:
    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            con = self._connect()
            con.executescript(_SCHEMA)
            con.close()
        except (OSError, sqlite3.Error) as exc:
            raise SubscriptionError(f"cannot open subscriptions at {db_path}: {exc}") from exc

    # ── public ──────────────────────────────────────────────────────────

    def subscribe(
        self,
        subscriber: str,
        amount: float,
        duration_days: int,
        now: datetime | None = None,
    ) -> Subscription:
        """Open a subscription; *amount* must cover :func:`price_for`."""
        if not subscriber:
            raise SubscriptionError("subscriber is required")
        if duration_days < 1:
            raise SubscriptionError(f"duration must be at least 1 day, got {duration_days}")
        price = price_for(duration_days)
        if amount < price:
            raise SubscriptionError(
                f"{duration_days}-day subscription costs {price} SOL, got {amount}"
            )

        starts_at = now or datetime.now(UTC)
        sub = Subscription(
            subscription_id=f"sub_{secrets.token_hex(8)}",
            subscriber=subscriber,
            amount=amount,
            duration_days=duration_days,
            starts_at=starts_at,
            expires_at=starts_at + timedelta(days=duration_days),
        )
        self._execute(
            """
            INSERT INTO subscriptions
                (subscription_id, subscriber, amount, duration_days, starts_at, expires_at, active)
            VALUES (?, ?, ?, ?, ?, ?, 1)
            """,
            (
                sub.subscription_id,
                sub.subscriber,
                sub.amount,
                sub.duration_days,
                sub.starts_at.isoformat(),
                sub.expires_at.isoformat(),
            ),
        )
        logger.info(
            "Subscription %s for %s until %s",
            sub.subscription_id,
            subscriber,
            sub.expires_at.isoformat(),
        )
        return sub

    def get(self, subscription_id: str) -> Subscription | None:
        rows = self._select("WHERE subscription_id = ?", (subscription_id,))
        return rows[0] if rows else None

    def is_active(self, subscriber: str, now: datetime | None = None) -> bool:
        now = now or datetime.now(UTC)
        return any(s.is_current(now) for s in self._select("WHERE subscriber = ?", (subscriber,)))

    def active_subscribers(self, now: datetime | None = None) -> list[str]:
        now = now or datetime.now(UTC)
        current = [s.subscriber for s in self._select("WHERE active = 1", ()) if s.is_current(now)]
        return list(dict.fromkeys(current))

    def cancel(self, subscription_id: str, subscriber: str) -> Subscription:
        """Deactivate a subscription; only its owner may cancel it."""
        sub = self.get(subscription_id)
        if sub is None:
            raise SubscriptionError(f"unknown subscription: {subscription_id}")
        if sub.subscriber != subscriber:
            raise SubscriptionError(f"{subscriber} does not own {subscription_id}")
        self._execute(
            "UPDATE subscriptions SET active = 0 WHERE subscription_id = ?",
            (subscription_id,),
        )
        logger.info("Subscription %s cancelled", subscription_id)
        return sub.model_copy(update={"active": False})

    # ── private ─────────────────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _execute(self, sql: str, params: tuple[object, ...]) -> None:
        try:
            con = self._connect()
            try:
                con.execute(sql, params)
                con.commit()
            finally:
                con.close()
        except sqlite3.Error as exc:
            raise SubscriptionError(f"subscription storage failed: {exc}") from exc

    def _select(self, where: str, params: tuple[object, ...]) -> list[Subscription]:
        try:
            con = self._connect()
            try:
                rows = con.execute(
                    "SELECT subscription_id, subscriber, amount, duration_days, "
                    f"starts_at, expires_at, active FROM subscriptions {where} "
                    "ORDER BY starts_at",
                    params,
                ).fetchall()
            finally:
                con.close()
        except sqlite3.Error as exc:
            raise SubscriptionError(f"subscription storage failed: {exc}") from exc
        return [
            Subscription(
                subscription_id=r[0],
                subscriber=r[1],
                amount=r[2],
                duration_days=r[3],
                starts_at=datetime.fromisoformat(r[4]),
                expires_at=datetime.fromisoformat(r[5]),
                active=bool(r[6]),
            )
            for r in rows
        ]
