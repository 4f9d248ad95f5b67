#!/usr/bin/env python
"""CLI for Radar: database bootstrap, one-off ingestion and a snapshot watcher."""

import argparse
import asyncio
import logging
import sys
from datetime import timedelta

from pydantic import BaseModel, Field, ValidationError

from app.config import get_settings
from app.logging_config import setup_logging

logger = logging.getLogger(__name__)


class RefreshArgs(BaseModel):
    """Validated arguments for `refresh`."""

    hours: float | None = Field(default=None, gt=0)


class WatchArgs(BaseModel):
    """Validated arguments for `watch`."""

    base_url: str = Field(min_length=1)
    auto_refresh_minutes: float = Field(default=30, gt=0)
    catchup_delay: float = Field(default=2, ge=0)


async def run_init_db() -> None:
    from app.db.postgres import engine, init_db

    try:
        await init_db()
        logger.info("Database tables are ready")
    finally:
        await engine.dispose()


async def run_refresh(args: RefreshArgs) -> None:
    """Run one ingestion cycle, the same way the cron endpoint does."""
    from app.agents import get_model_gateway
    from app.db.postgres import async_session, engine
    from app.services.ingestion_service import IngestionRunner
    from app.services.radar_store import RadarStore

    settings = get_settings()
    try:
        async with async_session() as session:
            store = RadarStore(
                session,
                retention_hours=settings.article_retention_hours,
                sentiment_history_limit=settings.sentiment_history_limit,
            )
            runner = IngestionRunner(get_model_gateway, store, settings=settings)
            lookback = timedelta(hours=args.hours) if args.hours else None
            result = await runner.run_cycle(lookback=lookback)
    finally:
        await engine.dispose()

    logger.info(f"Posts collected: {result.total_posts_collected}")
    logger.info(f"Unique posts: {len(result.posts)}")
    logger.info(f"Articles processed: {result.new_articles_count}")
    logger.info(f"Articles cleaned up: {result.deleted_count}")
    logger.info(f"Trends identified: {result.trends_identified}")


async def run_watch(args: WatchArgs) -> None:
    """Poll a deployed API with the dashboard's refresh rules until interrupted."""
    from app.client.refresh import RefreshScheduler
    from app.client.snapshot_client import SnapshotClient
    from app.schemas.radar import SnapshotResponse

    client = SnapshotClient(args.base_url)

    def report(snapshot: SnapshotResponse) -> None:
        logger.info(
            f"{len(snapshot.data.posts)} posts, {len(snapshot.data.trends)} trends, "
            f"sentiment {snapshot.data.sentiment_overview.overall}, "
            f"next update {snapshot.nextUpdate.isoformat() if snapshot.nextUpdate else 'unknown'}"
        )

    scheduler = RefreshScheduler(
        client.fetch,
        on_snapshot=report,
        catchup_delay=args.catchup_delay,
        auto_refresh_interval=args.auto_refresh_minutes * 60,
    )
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        await scheduler.close()
        await scheduler.wait_idle()
        await client.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = argparse.ArgumentParser(description="Radar news aggregation backend.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init-db", help="Create tables and indexes if they don't exist")

    refresh = subparsers.add_parser("refresh", help="Run one ingestion cycle (for system cron)")
    refresh.add_argument(
        "--hours",
        type=float,
        default=None,
        help="Lookback window in hours (default: social_lookback_days setting)",
    )

    watch = subparsers.add_parser("watch", help="Follow a running API like the dashboard does")
    watch.add_argument("--base-url", default="http://localhost:8000", help="API base URL")
    watch.add_argument("--auto-refresh-minutes", type=float, default=30)
    watch.add_argument("--catchup-delay", type=float, default=2)

    ns = parser.parse_args(argv)
    setup_logging(get_settings().log_level)

    try:
        if ns.command == "init-db":
            asyncio.run(run_init_db())
        elif ns.command == "refresh":
            asyncio.run(run_refresh(RefreshArgs(hours=ns.hours)))
        else:
            args = WatchArgs(
                base_url=ns.base_url,
                auto_refresh_minutes=ns.auto_refresh_minutes,
                catchup_delay=ns.catchup_delay,
            )
            asyncio.run(run_watch(args))
    except ValidationError as e:
        logger.error(str(e))
        return 2
    except KeyboardInterrupt:
        return 130
    except Exception:
        logger.exception(f"{ns.command} failed")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
