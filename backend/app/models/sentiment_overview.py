"""Sentiment overview history model."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class SentimentOverview(SQLModel, table=True):
    """One overall sentiment reading per ingestion cycle (capped history)."""

    __tablename__ = "sentiment_overview"

    id: int | None = Field(default=None, primary_key=True)
    overall: str = Field(max_length=16)
    score: float
    media_insights: str | None = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
