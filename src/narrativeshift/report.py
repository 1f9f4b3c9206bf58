"""Render scan results as a Markdown report."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path

from narrativeshift.models import NarrativeMetrics

logger = logging.getLogger(__name__)


def _platform_section(platform: str, m: NarrativeMetrics, threshold: float) -> list[str]:
    lines = [f"## {platform}", ""]
    if m.volume == 0:
        lines += ["_No relevant posts found._", ""]
        return lines

    b = m.sentiment_breakdown
    lines += [
        f"- **Migration score:** {m.score:.2f}",
        f"- **Volume:** {m.volume}",
        f"- **Velocity:** {m.velocity:.1f} posts/hour",
        f"- **Top alternative:** {m.top_alternative or 'N/A'}",
        f"- **Sentiment:** {b.positive} positive / {b.negative} negative / {b.neutral} neutral",
        "",
    ]
    if m.is_high_migration(threshold):
        lines += [f"> **HIGH MIGRATION NARRATIVE DETECTED** (score > {threshold:.2f})", ""]
    return lines


def render_report(
    results: Mapping[str, NarrativeMetrics],
    generated_at: datetime | None = None,
    threshold: float = 0.6,
) -> str:
    """Return a Markdown document with one section per scanned platform."""
    generated_at = generated_at or datetime.now(UTC)
    flagged = [p for p, m in results.items() if m.is_high_migration(threshold)]

    lines = [
        "# NarrativeShift scan",
        "",
        f"_Generated {generated_at.strftime('%Y-%m-%d %H:%M UTC')}_",
        "",
    ]
    if flagged:
        lines += [f"**High migration narratives:** {', '.join(flagged)}", ""]
    lines += ["---", ""]

    for platform, metrics in results.items():
        lines += _platform_section(platform, metrics, threshold)

    return "\n".join(lines).rstrip() + "\n"


def write_report(
    results: Mapping[str, NarrativeMetrics],
    output_dir: Path,
    generated_at: datetime | None = None,
    threshold: float = 0.6,
) -> Path:
    """Write the report to ``report-YYYYMMDD-HHMMSS.md`` in *output_dir*."""
    generated_at = generated_at or datetime.now(UTC)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / f"report-{generated_at.strftime('%Y%m%d-%H%M%S')}.md"
    path.write_text(render_report(results, generated_at, threshold), encoding="utf-8")
    logger.info("Report written to %s", path)
    return path
