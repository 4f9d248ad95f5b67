"""Cron endpoint - the scheduler's ingestion trigger."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.deps import get_ingestion_runner, require_cron_secret
from app.schemas.radar import CronResponse, CronStats
from app.services.ingestion_service import IngestionRunner

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_cron_secret)])


@router.api_route("/update", methods=["GET", "POST"], response_model=CronResponse)
async def run_update(
    runner: IngestionRunner = Depends(get_ingestion_runner),
) -> CronResponse | JSONResponse:
    """
    Run one ingestion cycle.

    Called by the external scheduler (GET) or manually (POST). Failures are
    reported as `{"error": ...}` with a 500; the process keeps serving.
    """
    logger.info(f"Cron job started: {datetime.now(UTC).isoformat()}")
    try:
        result = await runner.run_cycle()
    except Exception as e:
        logger.exception("Cron job error")
        return JSONResponse({"error": str(e) or "Failed to update data"}, status_code=500)

    logger.info(
        f"Cron job completed: processed {result.new_articles_count} articles, "
        f"cleaned up {result.deleted_count} old articles"
    )
    return CronResponse(
        stats=CronStats(
            totalPostsCollected=result.total_posts_collected,
            uniquePosts=len(result.posts),
            articlesProcessed=result.new_articles_count,
            articlesCleanedUp=result.deleted_count,
            trendsIdentified=result.trends_identified,
        ),
        updatedAt=datetime.now(UTC),
    )
