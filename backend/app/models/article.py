"""Article model for ingested posts and news items."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

# Columns overwritten when an already-known URL is ingested again
ARTICLE_MUTABLE_FIELDS = (
    "title",
    "image_url",
    "video_url",
    "media_analysis",
    "media_sentiment",
    "sentiment",
    "company",
    "timestamp",
    "snippet",
)


class Article(SQLModel, table=True):
    """
    Ingested article or social post.

    One row per URL. `created_at` is the first ingestion time, not the
    source's own timestamp, and drives both retention and ordering.
    """

    __tablename__ = "articles"

    id: int | None = Field(default=None, primary_key=True)

    # Content
    title: str
    url: str = Field(unique=True, index=True)
    snippet: str | None = Field(default=None)
    sentiment: str = Field(max_length=16)
    company: str = Field(index=True)
    timestamp: str = Field(default="")  # source-reported, display only

    # Media
    image_url: str | None = Field(default=None)
    video_url: str | None = Field(default=None)
    media_analysis: str | None = Field(default=None)
    media_sentiment: str | None = Field(default=None, max_length=16)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
