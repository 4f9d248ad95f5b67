"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.deps import CronUnauthorizedError
from app.api.v1.router import api_router
from app.config import get_settings
from app.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup/shutdown events."""
    # Startup
    settings = get_settings()
    setup_logging(settings.log_level)
    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")

    from app.db.postgres import engine, init_db

    await init_db()
    logger.info("PostgreSQL tables initialized")

    yield

    # Shutdown
    logger.info("Shutting down...")
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="News and social radar for tracked companies, refreshed on a schedule",
        version="0.1.0",
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CronUnauthorizedError)
    async def cron_unauthorized_handler(request: Request, exc: CronUnauthorizedError) -> JSONResponse:
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    # Include API router
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy", "app": settings.app_name}

    return app


app = create_app()
