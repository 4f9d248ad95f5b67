"""Radar endpoint - manual fetch-and-save with a custom lookback window."""

import logging
from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_ingestion_runner
from app.schemas.radar import FetchRequest, FetchResponse
from app.services.ingestion_service import IngestionRunner

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=FetchResponse)
async def fetch_and_save(
    request: FetchRequest | None = None,
    runner: IngestionRunner = Depends(get_ingestion_runner),
) -> FetchResponse | JSONResponse:
    """Run one ingestion cycle over the last `hours` (default 24) and return what was found."""
    request = request or FetchRequest()
    try:
        result = await runner.run_cycle(lookback=timedelta(hours=request.hours))
    except Exception as e:
        logger.exception("Manual fetch failed")
        return JSONResponse({"error": str(e) or "Failed to fetch radar data"}, status_code=500)

    return FetchResponse(
        data=result.payload,
        articlesProcessed=result.new_articles_count,
        articlesCleanedUp=result.deleted_count,
        citations=result.citations,
        savedAt=datetime.now(UTC),
    )
