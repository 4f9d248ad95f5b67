"""Tests for RadarStore persistence against an in-memory SQLite database."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.postgres import init_db
from app.models import Article, SentimentOverview, Trend
from app.schemas.radar import Post, SentimentOverviewData, TrendItem
from app.services.radar_store import RadarStore, as_utc
from conftest import FakeClock, make_post


@pytest.fixture
def store(session: AsyncSession, clock: FakeClock) -> RadarStore:
    return RadarStore(session, retention_hours=48, sentiment_history_limit=100, clock=clock)


async def _article(session: AsyncSession, url: str) -> Article | None:
    result = await session.execute(select(Article).where(Article.url == url))
    return result.scalar_one_or_none()


async def _count(session: AsyncSession, model: type) -> int:
    result = await session.execute(select(func.count()).select_from(model))
    return result.scalar_one()


class TestUpsert:
    async def test_same_url_twice_keeps_one_row_with_latest_fields(
        self, store: RadarStore, session: AsyncSession, clock: FakeClock
    ) -> None:
        first_seen = clock()
        await store.save(
            [make_post("https://a.com", title="First", sentiment="negative", company="Tesla")],
            [],
            SentimentOverviewData(),
        )
        clock.advance(hours=3)
        await store.save(
            [make_post("https://a.com", title="Second", sentiment="positive", snippet="More")],
            [],
            SentimentOverviewData(),
        )

        assert await _count(session, Article) == 1
        article = await _article(session, "https://a.com")
        await session.refresh(article)
        assert article.title == "Second"
        assert article.sentiment == "positive"
        assert article.company == "General"
        assert article.snippet == "More"
        assert as_utc(article.created_at) == first_seen

    async def test_upsert_keeps_row_id(self, store: RadarStore, session: AsyncSession) -> None:
        await store.upsert_articles([make_post("https://a.com")])
        original_id = (await _article(session, "https://a.com")).id

        await store.upsert_articles([make_post("https://a.com", title="Changed")])

        session.expunge_all()
        assert (await _article(session, "https://a.com")).id == original_id

    async def test_failed_row_is_skipped_and_not_counted(
        self, store: RadarStore, session: AsyncSession, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        real_upsert = store.upsert_article

        async def flaky_upsert(post: Post) -> None:
            if post.url == "https://bad.com":
                raise SQLAlchemyError("constraint violated")
            await real_upsert(post)

        monkeypatch.setattr(store, "upsert_article", flaky_upsert)

        count = await store.upsert_articles(
            [make_post("https://a.com"), make_post("https://bad.com"), make_post("https://b.com")]
        )

        assert count == 2
        assert await _count(session, Article) == 2
        assert await _article(session, "https://bad.com") is None

    async def test_database_error_mid_batch_rolls_back_and_continues(
        self, store: RadarStore, session: AsyncSession
    ) -> None:
        await session.execute(
            text(
                "CREATE TRIGGER reject_blocked BEFORE INSERT ON articles "
                "WHEN NEW.url = 'https://blocked.com' "
                "BEGIN SELECT RAISE(ABORT, 'blocked url'); END"
            )
        )
        await session.commit()

        count = await store.upsert_articles(
            [
                make_post("https://a.com"),
                make_post("https://blocked.com"),
                make_post("https://b.com"),
            ]
        )

        assert count == 2
        assert await _count(session, Article) == 2
        assert await _article(session, "https://blocked.com") is None
        assert await _article(session, "https://b.com") is not None


class TestRetention:
    async def test_cleanup_removes_articles_past_retention(
        self, store: RadarStore, session: AsyncSession, clock: FakeClock
    ) -> None:
        await store.upsert_articles([make_post("https://old.com")])
        clock.advance(hours=30)
        await store.upsert_articles([make_post("https://recent.com")])
        clock.advance(hours=19)

        result = await store.save([], [], SentimentOverviewData())

        assert result.deleted_count == 1
        assert result.new_articles_count == 0
        assert await _article(session, "https://old.com") is None
        assert await _article(session, "https://recent.com") is not None

    async def test_no_row_older_than_window_after_save(
        self, store: RadarStore, session: AsyncSession, clock: FakeClock
    ) -> None:
        for hour in range(0, 100, 10):
            await store.upsert_articles([make_post(f"https://site.com/{hour}")])
            clock.advance(hours=10)

        await store.save([make_post("https://site.com/new")], [], SentimentOverviewData())

        cutoff = clock() - timedelta(hours=48)
        rows = (await session.execute(select(Article))).scalars().all()
        assert rows
        assert all(as_utc(row.created_at) >= cutoff for row in rows)

    async def test_expired_article_reported_again_comes_back_as_new_row(
        self, store: RadarStore, session: AsyncSession, clock: FakeClock
    ) -> None:
        # created_at is first-seen time; re-ingesting does not extend an article's life.
        # Once expired, cleanup deletes it and the same cycle inserts it afresh.
        await store.save([make_post("https://a.com")], [], SentimentOverviewData())
        first_id = (await _article(session, "https://a.com")).id

        clock.advance(hours=47)
        await store.save([make_post("https://a.com")], [], SentimentOverviewData())
        session.expunge_all()
        kept = await _article(session, "https://a.com")
        assert kept.id == first_id
        assert as_utc(kept.created_at) == clock() - timedelta(hours=47)

        clock.advance(hours=2)
        result = await store.save([make_post("https://a.com")], [], SentimentOverviewData())
        session.expunge_all()
        renewed = await _article(session, "https://a.com")

        assert result.deleted_count == 1
        assert result.new_articles_count == 1
        assert as_utc(renewed.created_at) == clock()


class TestTrendsAndSentiment:
    async def test_trends_are_replaced_each_cycle(
        self, store: RadarStore, session: AsyncSession
    ) -> None:
        await store.save(
            [],
            [TrendItem(name="Robotaxi", score=0.9), TrendItem(name="Cybertruck", score=0.4)],
            SentimentOverviewData(),
        )
        await store.save([], [TrendItem(name="Starship", score=0.7)], SentimentOverviewData())

        data = await store.get_radar_data()

        assert [t.name for t in data.trends] == ["Starship"]
        assert await _count(session, Trend) == 1

    async def test_sentiment_history_is_capped(
        self, store: RadarStore, session: AsyncSession, clock: FakeClock
    ) -> None:
        for i in range(105):
            await store.append_sentiment_overview(SentimentOverviewData(score=i / 200))
            clock.advance(minutes=30)

        rows = (
            await session.execute(select(SentimentOverview).order_by(SentimentOverview.created_at))
        ).scalars().all()

        assert len(rows) == 100
        assert rows[0].score == pytest.approx(5 / 200)
        assert rows[-1].score == pytest.approx(104 / 200)

    async def test_latest_sentiment_is_reported(self, store: RadarStore, clock: FakeClock) -> None:
        await store.append_sentiment_overview(SentimentOverviewData(overall="negative", score=0.2))
        clock.advance(minutes=30)
        await store.append_sentiment_overview(
            SentimentOverviewData(overall="positive", score=0.9, media_insights="Launch photos")
        )

        overview = (await store.get_radar_data()).sentiment_overview

        assert overview.overall == "positive"
        assert overview.score == pytest.approx(0.9)
        assert overview.media_insights == "Launch photos"


class TestReads:
    async def test_empty_store(self, store: RadarStore) -> None:
        data = await store.get_radar_data()

        assert data.posts == []
        assert data.trends == []
        assert data.sentiment_overview.overall == "neutral"
        assert data.sentiment_overview.score == 0.5
        assert await store.get_last_update_time() is None
        assert await store.get_article_count() == 0

    async def test_articles_newest_first_and_trends_by_score(
        self, store: RadarStore, clock: FakeClock
    ) -> None:
        await store.upsert_articles([make_post("https://one.com")])
        clock.advance(minutes=5)
        await store.upsert_articles([make_post("https://two.com")])
        await store.replace_trends(
            [TrendItem(name="low", score=0.1), TrendItem(name="high", score=2.5)]
        )

        data = await store.get_radar_data()

        assert [p.url for p in data.posts] == ["https://two.com", "https://one.com"]
        assert [t.name for t in data.trends] == ["high", "low"]
        assert await store.get_last_update_time() == clock()
        assert await store.get_article_count() == 2


async def test_init_db_is_idempotent(engine, store: RadarStore) -> None:
    await store.upsert_articles([make_post("https://a.com")])

    await init_db(engine)
    await init_db(engine)

    assert await store.get_article_count() == 1


def test_free_text_columns_are_unbounded() -> None:
    columns = Article.__table__.c
    for name in ("title", "url", "company", "snippet", "media_analysis"):
        assert getattr(columns[name].type, "length", None) is None, name
