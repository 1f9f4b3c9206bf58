"""SQLite-backed append-only ledger of narrative snapshots."""

from __future__ import annotations

import logging
import secrets
import sqlite3
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from narrativeshift.models import NarrativeRecord

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS narratives (
    seq         INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id   TEXT NOT NULL UNIQUE,
    score       REAL NOT NULL,
    platform    TEXT NOT NULL,
    alternative TEXT NOT NULL DEFAULT '',
    timestamp   TEXT NOT NULL,
    stored_at   TEXT NOT NULL
);
"""


class LedgerError(Exception):
    """Raised when the ledger cannot be read or written."""


def build_record(score: float, platform: str, alternative: str, timestamp: str) -> NarrativeRecord:
    """Validate a snapshot and assign it a fresh record ID."""
    return NarrativeRecord(
        record_id=f"nr_{secrets.token_hex(8)}",
        score=score,
        platform=platform,
        alternative=alternative or "",
        timestamp=timestamp,
        stored_at=datetime.now(UTC).isoformat(),
    )


class Ledger(Protocol):
    def record(self, score: float, platform: str, alternative: str, timestamp: str) -> str: ...

    def history(self, platform: str = "all", limit: int = 10) -> list[NarrativeRecord]: ...


class NarrativeLedger:
    """Append-only narrative log; records are never edited or deleted."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        try:
            db_path.parent.mkdir(parents=True, exist_ok=True)
            self._init_db()
        except (OSError, sqlite3.Error) as exc:
            raise LedgerError(f"cannot open ledger at {db_path}: {exc}") from exc

    # ── public ──────────────────────────────────────────────────────────

    def record(self, score: float, platform: str, alternative: str, timestamp: str) -> str:
        """Append one snapshot and return its record ID."""
        return self.append([build_record(score, platform, alternative, timestamp)])[0]

    def append(self, records: Sequence[NarrativeRecord]) -> list[str]:
        """Write *records* in one transaction: all of them or none."""
        if not records:
            return []
        try:
            con = self._connect()
            try:
                con.executemany(
                    """
                    INSERT INTO narratives
                        (record_id, score, platform, alternative, timestamp, stored_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    [
                        (
                            rec.record_id,
                            rec.score,
                            rec.platform,
                            rec.alternative,
                            rec.timestamp,
                            rec.stored_at,
                        )
                        for rec in records
                    ],
                )
                con.commit()
            finally:
                con.close()
        except sqlite3.Error as exc:
            raise LedgerError(f"failed to record narratives: {exc}") from exc

        for rec in records:
            logger.info(
                "Recorded %s: %s → %s (score %.2f)",
                rec.record_id,
                rec.platform,
                rec.alternative or "n/a",
                rec.score,
            )
        return [rec.record_id for rec in records]

    def history(self, platform: str = "all", limit: int = 10) -> list[NarrativeRecord]:
        """Return up to *limit* most recent records, oldest first.

        *platform* filters by case-insensitive exact match unless ``"all"``.
        """
        if limit <= 0:
            return []

        query = "SELECT record_id, score, platform, alternative, timestamp, stored_at FROM narratives"
        params: tuple[object, ...] = ()
        if platform.lower() != "all":
            query += " WHERE lower(platform) = lower(?)"
            params = (platform,)
        query += " ORDER BY seq DESC LIMIT ?"
        params += (limit,)

        try:
            con = self._connect()
            try:
                rows = con.execute(query, params).fetchall()
            finally:
                con.close()
        except sqlite3.Error as exc:
            raise LedgerError(f"failed to read history: {exc}") from exc

        return [
            NarrativeRecord(
                record_id=row[0],
                score=row[1],
                platform=row[2],
                alternative=row[3],
                timestamp=row[4],
                stored_at=row[5],
            )
            for row in reversed(rows)
        ]

    # ── private ─────────────────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _init_db(self) -> None:
        con = self._connect()
        con.executescript(_SCHEMA)
        con.close()
