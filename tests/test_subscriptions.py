"""Unit tests for alert subscriptions."""

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from narrativeshift.subscriptions import SubscriptionBook, SubscriptionError, price_for

_NOW = datetime(2026, 2, 14, 12, 0, tzinfo=UTC)


def _book(tmp_path: Path) -> SubscriptionBook:
    return SubscriptionBook(tmp_path / "subs.sqlite3")


class TestPricing:
    def test_tiers(self) -> None:
        assert price_for(1) == 0.1
        assert price_for(30) == 0.1
        assert price_for(31) == 0.3


class TestSubscribe:
    def test_active_until_expiry(self, tmp_path: Path) -> None:
        book = _book(tmp_path)
        sub = book.subscribe("alice", 0.1, 30, now=_NOW)
        assert sub.expires_at == _NOW + timedelta(days=30)
        assert book.is_active("alice", now=_NOW + timedelta(days=29))
        assert not book.is_active("alice", now=_NOW + timedelta(days=31))
        assert not book.is_active("bob", now=_NOW)

    def test_underpayment(self, tmp_path: Path) -> None:
        with pytest.raises(SubscriptionError):
            _book(tmp_path).subscribe("alice", 0.1, 90, now=_NOW)

    def test_invalid_duration(self, tmp_path: Path) -> None:
        with pytest.raises(SubscriptionError):
            _book(tmp_path).subscribe("alice", 1.0, 0, now=_NOW)

    def test_active_subscribers(self, tmp_path: Path) -> None:
        book = _book(tmp_path)
        book.subscribe("alice", 0.1, 30, now=_NOW)
        book.subscribe("alice", 0.3, 90, now=_NOW)
        book.subscribe("bob", 0.1, 1, now=_NOW - timedelta(days=5))
        assert book.active_subscribers(now=_NOW) == ["alice"]


class TestCancel:
    def test_owner_cancels(self, tmp_path: Path) -> None:
        book = _book(tmp_path)
        sub = book.subscribe("alice", 0.1, 30, now=_NOW)
        cancelled = book.cancel(sub.subscription_id, "alice")
        assert cancelled.active is False
        assert not book.is_active("alice", now=_NOW)

    def test_foreign_cancel_rejected(self, tmp_path: Path) -> None:
        book = _book(tmp_path)
        sub = book.subscribe("alice", 0.1, 30, now=_NOW)
        with pytest.raises(SubscriptionError):
            book.cancel(sub.subscription_id, "mallory")
        assert book.is_active("alice", now=_NOW)

    def test_unknown_id(self, tmp_path: Path) -> None:
        with pytest.raises(SubscriptionError):
            _book(tmp_path).cancel("sub_missing", "alice")
