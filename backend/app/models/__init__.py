"""Models package - SQLModel database models."""

from app.models.article import ARTICLE_MUTABLE_FIELDS, Article
from app.models.sentiment_overview import SentimentOverview
from app.models.trend import Trend

__all__ = ["Article", "ARTICLE_MUTABLE_FIELDS", "Trend", "SentimentOverview"]
