"""Centralised configuration loaded from environment variables and dotenv."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Paths ──────────────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# ── Post sources ───────────────────────────────────────────────────────────
X_BEARER_TOKEN: str = os.getenv("X_BEARER_TOKEN", "")
TWITTER_AUTH_TOKEN: str = os.getenv("TWITTER_AUTH_TOKEN", "")
TWITTER_CT0: str = os.getenv("TWITTER_CT0", "")
BIRD_BIN: str = os.getenv("BIRD_BIN", "bird")
SOURCE: str = os.getenv("NARRATIVESHIFT_SOURCE", "auto")

# ── Scan defaults (overridden at runtime by CLI) ───────────────────────────
DEFAULT_PLATFORMS: list[str] = [
    p.strip()
    for p in os.getenv("NARRATIVESHIFT_PLATFORMS", "discord,telegram,bluesky,mastodon").split(",")
    if p.strip()
]
QUERY_LIMIT: int = int(os.getenv("NARRATIVESHIFT_LIMIT", "100"))
HIGH_SCORE_THRESHOLD: float = float(os.getenv("NARRATIVESHIFT_HIGH_SCORE", "0.6"))
LEXICON_PATH: Path = Path(
    os.getenv("NARRATIVESHIFT_LEXICON", str(PROJECT_ROOT / "config" / "lexicon.yml"))
)

# ── Storage / output ───────────────────────────────────────────────────────
DB_BASE: Path = Path(os.getenv("NARRATIVESHIFT_DB_DIR", str(PROJECT_ROOT / "var")))
OUTPUT_BASE: Path = Path(os.getenv("NARRATIVESHIFT_OUTPUT_DIR", str(PROJECT_ROOT / "out")))

# ── Email alerts ───────────────────────────────────────────────────────────
SMTP_HOST: str = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT: int = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME: str = os.getenv("SMTP_USERNAME", "")
SMTP_PASSWORD: str = os.getenv("SMTP_PASSWORD", "")
EMAIL_TO: list[str] = [a.strip() for a in os.getenv("EMAIL_TO", "").split(",") if a.strip()]


def email_enabled() -> bool:
    """Alerts are sent only when SMTP credentials and recipients are all set."""
    return bool(SMTP_USERNAME and SMTP_PASSWORD and EMAIL_TO)


def data_paths() -> dict[str, Path]:
    """Return resolved storage paths.

    Keys: ``ledger``, ``subscriptions``, ``output_dir``.
    """
    return {
        "ledger": DB_BASE / "ledger.sqlite3",
        "subscriptions": DB_BASE / "subscriptions.sqlite3",
        "output_dir": OUTPUT_BASE,
    }
