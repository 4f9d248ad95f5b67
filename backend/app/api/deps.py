"""Shared FastAPI dependencies for the radar endpoints."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.agents import ModelGateway, get_model_gateway
from app.config import Settings, get_settings
from app.db.postgres import get_session as get_db
from app.services.ingestion_service import IngestionRunner
from app.services.radar_store import RadarStore


def get_gateway_factory() -> Callable[[], ModelGateway]:
    """How ingestion routes build their model gateway; called inside the route."""
    return get_model_gateway


def get_radar_store(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> RadarStore:
    return RadarStore(
        db,
        retention_hours=settings.article_retention_hours,
        sentiment_history_limit=settings.sentiment_history_limit,
    )


def get_ingestion_runner(
    gateway_factory: Callable[[], ModelGateway] = Depends(get_gateway_factory),
    store: RadarStore = Depends(get_radar_store),
    settings: Settings = Depends(get_settings),
) -> IngestionRunner:
    return IngestionRunner(gateway_factory, store, settings=settings)


class CronUnauthorizedError(Exception):
    """The scheduler credential was missing or wrong."""


def verify_cron_secret(authorization: str | None, settings: Settings) -> bool:
    """Bearer token check; with no secret configured the trigger is open (development)."""
    if not settings.cron_secret:
        return True
    return authorization == f"Bearer {settings.cron_secret}"


def require_cron_secret(
    authorization: Annotated[str | None, Header()] = None,
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject the request before any other dependency (DB, gateway) is created."""
    if not verify_cron_secret(authorization, settings):
        raise CronUnauthorizedError()
