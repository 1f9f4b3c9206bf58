"""Unit tests for scan orchestration."""

from pathlib import Path
from unittest.mock import patch

import pytest

from narrativeshift import config
from narrativeshift.ledger import NarrativeLedger
from narrativeshift.models import Post
from narrativeshift.pipeline import build_queries, build_source, run_scan, scan
from narrativeshift.sources import FixtureSource, SourceQueryError
from narrativeshift.subscriptions import SubscriptionBook


def _make(post_id: str, text: str = "moving to telegram") -> Post:
    return Post(post_id=post_id, text=text, author="testuser")


class ScriptedSource:
    """Returns canned posts per query index; ``None`` entries raise."""

    def __init__(self, responses: list[list[Post] | None]) -> None:
        self._responses = responses
        self.calls: list[tuple[str, int]] = []

    def search(self, query: str, limit: int) -> list[Post]:
        response = self._responses[len(self.calls)]
        self.calls.append((query, limit))
        if response is None:
            raise SourceQueryError(f"boom: {query}")
        return response


class TestBuildQueries:
    def test_templates(self) -> None:
        queries = build_queries("discord")
        assert len(queries) == 7
        assert queries[0] == '"leaving discord"'
        assert '"discord exodus"' in queries


class TestScan:
    def test_issues_three_capped_queries(self) -> None:
        source = ScriptedSource([[], [], []])
        scan("discord", 30, source=source)
        assert [q for q, _ in source.calls] == build_queries("discord")[:3]
        assert all(limit == 10 for _, limit in source.calls)

    def test_overlap_is_deduplicated(self) -> None:
        source = ScriptedSource(
            [
                [_make("1"), _make("2")],
                [_make("2"), _make("3")],
                [_make("3")],
            ]
        )
        m = scan("discord", 100, source=source)
        assert m.volume == 3
        assert m.platform == "discord"

    def test_one_failure_degrades_gracefully(self) -> None:
        source = ScriptedSource([[_make("1")], None, [_make("2")]])
        m = scan("discord", 90, source=source)
        assert m.volume == 2
        assert m.top_alternative == "telegram"

    def test_unexpected_exception_is_absorbed(self) -> None:
        class Broken:
            def search(self, query: str, limit: int) -> list[Post]:
                raise RuntimeError("socket closed")

        m = scan("discord", 10, source=Broken())
        assert m.volume == 0

    def test_all_failures_give_empty_metrics(self) -> None:
        m = scan("discord", 30, source=ScriptedSource([None, None, None]))
        assert m.volume == 0
        assert m.score == 0.0
        assert m.velocity == 0.0
        assert m.top_alternative is None

    def test_result_capped_to_limit(self) -> None:
        source = ScriptedSource(
            [[_make(f"{q}-{i}") for i in range(5)] for q in range(3)]
        )
        m = scan("discord", 4, source=source)
        assert m.volume == 4

    def test_fixture_source(self) -> None:
        m = scan("discord", 100, source=FixtureSource())
        assert m.volume == 3
        assert m.top_alternative == "telegram"
        assert m.score >= 0.4


class TestBuildSource:
    def test_fixture(self) -> None:
        assert isinstance(build_source("fixture"), FixtureSource)

    def test_auto_without_credentials(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "X_BEARER_TOKEN", "")
        monkeypatch.setattr(config, "TWITTER_AUTH_TOKEN", "")
        monkeypatch.setattr(config, "TWITTER_CT0", "")
        assert isinstance(build_source("auto"), FixtureSource)

    def test_unknown(self) -> None:
        with pytest.raises(ValueError):
            build_source("carrier-pigeon")


class TestRunScan:
    def test_records_and_reports(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "DB_BASE", tmp_path / "var")
        monkeypatch.setattr(config, "OUTPUT_BASE", tmp_path / "out")
        monkeypatch.setattr(config, "SMTP_USERNAME", "")

        results = run_scan(["discord"], 30, source_kind="fixture", record=True)

        assert results["discord"].volume == 3
        history = NarrativeLedger(tmp_path / "var" / "ledger.sqlite3").history()
        assert len(history) == 1
        assert history[0].platform == "discord"
        assert history[0].alternative == "telegram"
        assert len(list((tmp_path / "out").glob("report-*.md"))) == 1

    def test_dry_run_writes_nothing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "DB_BASE", tmp_path / "var")
        monkeypatch.setattr(config, "OUTPUT_BASE", tmp_path / "out")

        run_scan(["discord"], 30, source_kind="fixture", record=True, dry_run=True)

        assert not (tmp_path / "var").exists()
        assert not (tmp_path / "out").exists()


class TestAlerts:
    @pytest.fixture(autouse=True)
    def _alerting(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(config, "DB_BASE", tmp_path / "var")
        monkeypatch.setattr(config, "OUTPUT_BASE", tmp_path / "out")
        monkeypatch.setattr(config, "HIGH_SCORE_THRESHOLD", 0.1)
        monkeypatch.setattr(config, "SMTP_USERNAME", "bot@example.com")
        monkeypatch.setattr(config, "SMTP_PASSWORD", "secret")
        monkeypatch.setattr(config, "EMAIL_TO", ["ops@example.com"])

    def test_suppressed_without_subscribers(self) -> None:
        with patch("narrativeshift.pipeline.send_alert") as send:
            run_scan(["discord"], 30, source_kind="fixture")
        send.assert_not_called()

    def test_suppressed_after_cancel(self, tmp_path: Path) -> None:
        book = SubscriptionBook(tmp_path / "var" / "subscriptions.sqlite3")
        sub = book.subscribe("alice", 0.1, 30)
        book.cancel(sub.subscription_id, "alice")
        with patch("narrativeshift.pipeline.send_alert") as send:
            run_scan(["discord"], 30, source_kind="fixture")
        send.assert_not_called()

    def test_sent_with_active_subscriber(self, tmp_path: Path) -> None:
        SubscriptionBook(tmp_path / "var" / "subscriptions.sqlite3").subscribe("alice", 0.1, 30)
        with patch("narrativeshift.pipeline.send_alert") as send:
            run_scan(["discord"], 30, source_kind="fixture")
        send.assert_called_once()
        kwargs = send.call_args.kwargs
        assert kwargs["to_addrs"] == ["ops@example.com"]
        assert "discord" in kwargs["subject"]
        assert kwargs["body_text"].startswith("# NarrativeShift scan")
