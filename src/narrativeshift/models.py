"""Domain models used across the pipeline."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field


class PostMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    like_count: int = 0
    repost_count: int = 0


class Post(BaseModel):
    """A short public post as yielded by a post source."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    post_id: str = Field(alias="id")
    text: str = ""
    author: str = ""
    # Raw strings are kept as-is; unparseable values are skipped by velocity.
    created_at: datetime | str | None = None
    metrics: PostMetrics = Field(default_factory=PostMetrics)


class Classification(BaseModel):
    model_config = ConfigDict(frozen=True)

    polarity: float = Field(default=0.0, ge=-1.0, le=1.0)
    magnitude: float = Field(default=0.0, ge=0.0, le=1.0)
    migration_intent: bool = False
    target_platform: str | None = None


class SentimentBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    positive: int = Field(default=0, ge=0)
    negative: int = Field(default=0, ge=0)
    neutral: int = Field(default=0, ge=0)

    @property
    def total(self) -> int:
        return self.positive + self.negative + self.neutral


class NarrativeMetrics(BaseModel):
    """Batch-level migration signal for one source platform."""

    model_config = ConfigDict(frozen=True)

    platform: str = ""
    score: float = Field(default=0.0, ge=0.0, le=1.0)
    volume: int = Field(default=0, ge=0)
    velocity: float = Field(default=0.0, ge=0.0)  # posts per hour
    top_alternative: str | None = None
    sentiment_breakdown: SentimentBreakdown = Field(default_factory=SentimentBreakdown)

    def is_high_migration(self, threshold: float = 0.6) -> bool:
        return self.score > threshold


class NarrativeRecord(BaseModel):
    record_id: str = ""
    score: float = Field(ge=0.0, le=1.0)
    platform: str = Field(min_length=1, max_length=20)
    alternative: str = Field(default="", max_length=20)
    timestamp: str
    stored_at: str = ""


class Subscription(BaseModel):
    subscription_id: str
    subscriber: str
    amount: float
    duration_days: int
    starts_at: datetime
    expires_at: datetime
    active: bool = True

    def is_current(self, now: datetime | None = None) -> bool:
        """True while the subscription is active and not yet expired."""
        now = now or datetime.now(UTC)
        return self.active and self.expires_at > now
