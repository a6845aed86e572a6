"""
Milestone Countdown - Main Application Entry Point

Serves the milestone set, its derived timeline and a live tick stream.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from countdown.core.config import get_settings
from countdown.core.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    # Startup
    settings = get_settings()
    logger.info(f"Starting Milestone Countdown in {settings.ENVIRONMENT} mode...")

    from countdown.api.deps import get_sync_engine, get_tick_scheduler

    # The local cache always lives in SQLite, whichever store is active
    from countdown.infrastructure.local.database import init_db

    await init_db()

    engine = get_sync_engine()
    ticks = get_tick_scheduler()
    ticks.start()
    # Subscribes immediately; migration runs in the background
    await engine.start()

    yield

    # Shutdown
    logger.info("Shutting down Milestone Countdown...")
    await engine.stop()
    ticks.shutdown()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Milestone Countdown",
        description="Countdown and progress tracking for a handful of personal milestones",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from countdown.api import milestones, settings as settings_api, status, timeline, transfer

    app.include_router(milestones.router, prefix="/api/milestones", tags=["milestones"])
    app.include_router(timeline.router, prefix="/api/timeline", tags=["timeline"])
    app.include_router(transfer.router, prefix="/api/transfer", tags=["transfer"])
    app.include_router(settings_api.router, prefix="/api/settings", tags=["settings"])
    app.include_router(status.router, prefix="/api/status", tags=["status"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "environment": settings.ENVIRONMENT,
            "version": "0.1.0",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
    )
