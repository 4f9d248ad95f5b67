"""Trend model - replaced wholesale on every ingestion cycle."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


class Trend(SQLModel, table=True):
    """A ranked topic identified in the latest ingestion cycle."""

    __tablename__ = "trends"

    id: int | None = Field(default=None, primary_key=True)
    name: str
    score: float
    sentiment: str = Field(max_length=16)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
