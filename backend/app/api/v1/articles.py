"""Articles API endpoint - the dashboard's snapshot read."""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, Response
from fastapi.responses import JSONResponse

from app.api.deps import get_radar_store
from app.config import Settings, get_settings
from app.schemas.radar import SnapshotResponse
from app.services.radar_store import RadarStore
from app.services.snapshot_service import SnapshotCache, SnapshotService, get_snapshot_cache

logger = logging.getLogger(__name__)

router = APIRouter()

NO_STORE = "no-store, max-age=0"


@router.get("", response_model=SnapshotResponse)
async def get_snapshot(
    response: Response,
    store: RadarStore = Depends(get_radar_store),
    cache: SnapshotCache = Depends(get_snapshot_cache),
    settings: Settings = Depends(get_settings),
) -> SnapshotResponse | JSONResponse:
    """
    Current articles, trends and latest sentiment with update timestamps.

    Intermediate HTTP caches are disabled; the service keeps its own short
    TTL cache instead.
    """
    service = SnapshotService(
        store, cache, refresh_period=timedelta(minutes=settings.refresh_period_minutes)
    )
    try:
        snapshot = await service.get_snapshot()
    except Exception as e:
        logger.exception("Error fetching articles")
        return JSONResponse(
            {"error": str(e) or "Failed to fetch articles"},
            status_code=500,
            headers={"Cache-Control": NO_STORE},
        )

    response.headers["Cache-Control"] = NO_STORE
    return snapshot
