"""Radar store - retention-bounded persistence for articles, trends and sentiment."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ARTICLE_MUTABLE_FIELDS, Article, SentimentOverview, Trend
from app.schemas.radar import Post, RadarPayload, SentimentOverviewData, TrendItem

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes read back from drivers that drop the offset."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass
class SaveResult:
    new_articles_count: int
    deleted_count: int


class RadarStore:
    """
    Owns every write to the articles, trends and sentiment_overview tables.

    `save` runs cleanup, article upserts, trend replacement and the sentiment
    append in that order, committing each step before starting the next.
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        retention_hours: float = 48,
        sentiment_history_limit: int = 100,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.session = session
        self.retention = timedelta(hours=retention_hours)
        self.sentiment_history_limit = sentiment_history_limit
        self.clock = clock

    def _insert(self) -> Any:
        """Dialect-specific INSERT construct with ON CONFLICT support."""
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert(Article)
        return postgresql.insert(Article)

    async def cleanup_old_articles(self) -> int:
        """Delete articles first ingested before the retention cutoff."""
        cutoff = self.clock() - self.retention
        result = await self.session.execute(
            delete(Article).where(Article.created_at < cutoff),
            execution_options={"synchronize_session": False},
        )
        await self.session.commit()
        return result.rowcount or 0

    async def upsert_article(self, post: Post) -> None:
        """Insert a post, or refresh the mutable fields of the row with its URL."""
        values = post.model_dump(include=set(ARTICLE_MUTABLE_FIELDS) | {"url"})
        stmt = self._insert().values(**values, created_at=self.clock())
        stmt = stmt.on_conflict_do_update(
            index_elements=["url"],
            set_={name: stmt.excluded[name] for name in ARTICLE_MUTABLE_FIELDS},
        )
        await self.session.execute(stmt)
        await self.session.commit()

    async def upsert_articles(self, posts: Sequence[Post]) -> int:
        """Upsert each post independently; failed rows are logged and skipped."""
        count = 0
        for post in posts:
            try:
                await self.upsert_article(post)
                count += 1
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.warning(f"Error upserting article {post.url}: {e}")
        return count

    async def replace_trends(self, trends: Sequence[TrendItem]) -> None:
        """Trends are always current: drop the previous set, insert the new one."""
        await self.session.execute(
            delete(Trend), execution_options={"synchronize_session": False}
        )
        now = self.clock()
        self.session.add_all(
            Trend(name=t.name, score=t.score, sentiment=t.sentiment, created_at=now)
            for t in trends
        )
        await self.session.commit()

    async def append_sentiment_overview(self, overview: SentimentOverviewData) -> None:
        """Record a new overview and trim the history to the newest N rows."""
        self.session.add(
            SentimentOverview(
                overall=overview.overall,
                score=overview.score,
                media_insights=overview.media_insights,
                created_at=self.clock(),
            )
        )
        await self.session.flush()

        newest = (
            select(SentimentOverview.id)
            .order_by(SentimentOverview.created_at.desc(), SentimentOverview.id.desc())
            .limit(self.sentiment_history_limit)
        )
        await self.session.execute(
            delete(SentimentOverview).where(SentimentOverview.id.not_in(newest)),
            execution_options={"synchronize_session": False},
        )
        await self.session.commit()

    async def save(
        self,
        posts: Sequence[Post],
        trends: Sequence[TrendItem],
        sentiment_overview: SentimentOverviewData,
    ) -> SaveResult:
        """Persist one ingestion cycle's output."""
        deleted_count = await self.cleanup_old_articles()
        if deleted_count > 0:
            logger.info(
                f"Cleaned up {deleted_count} articles older than "
                f"{self.retention.total_seconds() / 3600:g} hours"
            )

        new_articles_count = await self.upsert_articles(posts)
        await self.replace_trends(trends)
        await self.append_sentiment_overview(sentiment_overview)

        return SaveResult(new_articles_count=new_articles_count, deleted_count=deleted_count)

    # Read side

    async def get_radar_data(self) -> RadarPayload:
        """All retained articles (newest first), trends by score, latest sentiment."""
        articles = await self.session.execute(select(Article).order_by(Article.created_at.desc()))
        trends = await self.session.execute(select(Trend).order_by(Trend.score.desc()))
        latest = await self.session.execute(
            select(SentimentOverview)
            .order_by(SentimentOverview.created_at.desc(), SentimentOverview.id.desc())
            .limit(1)
        )
        overview = latest.scalars().first()

        return RadarPayload(
            posts=[Post.model_validate(a) for a in articles.scalars().all()],
            trends=[TrendItem.model_validate(t) for t in trends.scalars().all()],
            sentiment_overview=(
                SentimentOverviewData.model_validate(overview)
                if overview
                else SentimentOverviewData()
            ),
        )

    async def get_last_update_time(self) -> datetime | None:
        """Ingestion time of the most recently created article."""
        result = await self.session.execute(select(func.max(Article.created_at)))
        last = result.scalar_one_or_none()
        return as_utc(last) if last else None

    async def get_article_count(self) -> int:
        result = await self.session.execute(select(func.count(Article.id)))
        return result.scalar_one()
