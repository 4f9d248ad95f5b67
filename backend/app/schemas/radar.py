"""Radar schemas for model payloads and API responses."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

Sentiment = Literal["positive", "negative", "neutral"]

SENTIMENT_VALUES: frozenset[str] = frozenset({"positive", "negative", "neutral"})


def normalize_sentiment(value: Any, default: str | None = "neutral") -> str | None:
    """Map a free-text sentiment label onto the sentiment enum."""
    if isinstance(value, str):
        label = value.strip().lower()
        if label in SENTIMENT_VALUES:
            return label
    return default


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


class Post(BaseModel):
    """A single article or social post as reported by the model."""

    model_config = ConfigDict(from_attributes=True)

    title: str = "Untitled"
    image_url: str | None = None
    video_url: str | None = None
    media_analysis: str | None = None
    media_sentiment: Sentiment | None = None
    url: str = ""
    sentiment: Sentiment = "neutral"
    company: str = "General"
    timestamp: str = ""
    snippet: str | None = None

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, v: Any) -> str:
        return normalize_sentiment(v) or "neutral"

    @field_validator("media_sentiment", mode="before")
    @classmethod
    def _coerce_media_sentiment(cls, v: Any) -> str | None:
        return normalize_sentiment(v, default=None)

    @field_validator("image_url", "video_url", "media_analysis", "snippet", mode="before")
    @classmethod
    def _coerce_optional(cls, v: Any) -> Any:
        v = _blank_to_none(v)
        return None if v is None else str(v)

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        title = "" if v is None else str(v).strip()
        return title or "Untitled"

    @field_validator("url", "company", "timestamp", mode="before")
    @classmethod
    def _coerce_text(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()


class TrendItem(BaseModel):
    """A ranked topic."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    score: float = 0.0
    sentiment: Sentiment = "neutral"

    @field_validator("sentiment", mode="before")
    @classmethod
    def _coerce_sentiment(cls, v: Any) -> str:
        return normalize_sentiment(v) or "neutral"


class SentimentOverviewData(BaseModel):
    """Overall sentiment reading for one ingestion cycle."""

    model_config = ConfigDict(from_attributes=True)

    overall: Sentiment = "neutral"
    score: float = 0.5
    media_insights: str | None = None

    @field_validator("overall", mode="before")
    @classmethod
    def _coerce_overall(cls, v: Any) -> str:
        return normalize_sentiment(v) or "neutral"

    @field_validator("media_insights", mode="before")
    @classmethod
    def _coerce_insights(cls, v: Any) -> Any:
        return _blank_to_none(v)


class RadarPayload(BaseModel):
    """Structured content extracted from one model reply."""

    posts: list[Post] = Field(default_factory=list)
    trends: list[TrendItem] = Field(default_factory=list)
    sentiment_overview: SentimentOverviewData = Field(default_factory=SentimentOverviewData)


class SnapshotResponse(BaseModel):
    """Schema for the dashboard snapshot read."""

    data: RadarPayload
    lastUpdate: datetime | None = None
    nextUpdate: datetime | None = None


class CronStats(BaseModel):
    """Per-cycle counters reported to the scheduler."""

    totalPostsCollected: int
    uniquePosts: int
    articlesProcessed: int
    articlesCleanedUp: int
    trendsIdentified: int


class CronResponse(BaseModel):
    """Schema for a successful ingestion trigger."""

    success: bool = True
    stats: CronStats
    updatedAt: datetime


class FetchRequest(BaseModel):
    """Schema for a manual fetch-and-save request."""

    hours: float = Field(default=24, gt=0, le=24 * 30, description="Lookback window in hours")


class FetchResponse(BaseModel):
    """Schema for a manual fetch-and-save response."""

    success: bool = True
    data: RadarPayload
    articlesProcessed: int
    articlesCleanedUp: int
    citations: list[str] = Field(default_factory=list)
    savedAt: datetime
