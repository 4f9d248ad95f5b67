"""API v1 main router - aggregates all endpoint routers."""

from fastapi import APIRouter

from app.api.v1 import articles, cron, radar

api_router = APIRouter()

# Main endpoints
api_router.include_router(articles.router, prefix="/articles", tags=["articles"])
api_router.include_router(cron.router, prefix="/cron", tags=["ingestion"])
api_router.include_router(radar.router, prefix="/radar", tags=["ingestion"])
