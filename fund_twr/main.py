"""
FastAPI Main Application
Fund store, daily ingestion scheduler and the TWR API
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import asyncio
import logging
from typing import AsyncGenerator
from sqlalchemy import text

from fund_twr.config import settings
from fund_twr.core.logging import setup_logging
from fund_twr.infrastructure.db.database import (
    close_db,
    create_engine_from_url,
    create_session_factory,
    init_db,
)
from fund_twr.infrastructure.db.repositories.fund_repository import FundRepository
from fund_twr.infrastructure.open_data.data_gov_client import DataGovClient
from fund_twr.services.ingestion_service import IngestionService
from fund_twr.scheduler.main import FundDataScheduler
from fund_twr.api.routes import funds, portfolio

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


async def _initial_load(ingestion_service: IngestionService):
    try:
        await ingestion_service.refresh_if_empty()
    except Exception as exc:
        logger.error(f"❌ Initial data load failed: {exc}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Handles startup and shutdown of all services
    """
    logger.info("🚀 Starting Fund TWR service")

    # 1. Database
    engine = create_engine_from_url(settings.DATABASE_URL, echo=settings.DEBUG)
    await init_db(engine)
    store = FundRepository(create_session_factory(engine))
    app.state.db_engine = engine
    app.state.fund_store = store
    logger.info("✅ Database initialized")

    # 2. Ingestion
    client = DataGovClient(
        base_url=settings.DATA_GOV_BASE_URL,
        page_size=settings.DATA_GOV_PAGE_SIZE,
        timeout_seconds=settings.DATA_GOV_TIMEOUT_SECONDS,
    )
    ingestion_service = IngestionService(store, client)

    initial_load_task: asyncio.Task | None = None
    if settings.INGESTION_ON_STARTUP:
        initial_load_task = asyncio.create_task(_initial_load(ingestion_service))

    # 3. Scheduler
    scheduler: FundDataScheduler | None = None
    if settings.SCHEDULER_ENABLED:
        try:
            scheduler = FundDataScheduler(ingestion_service)
            scheduler.start()
        except Exception as e:
            logger.error(f"❌ Failed to start scheduler: {e}")
            scheduler = None
    else:
        logger.info("⏰ Scheduler disabled")
    app.state.scheduler = scheduler

    logger.info(f"✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")

    yield

    logger.info("🛑 Shutting down Fund TWR service")
    if scheduler:
        scheduler.stop()

    if initial_load_task and not initial_load_task.done():
        initial_load_task.cancel()
        try:
            await initial_load_task
        except asyncio.CancelledError:
            logger.info("Initial data load cancelled")

    await close_db(engine)
    logger.info("👋 Shutdown complete")


def create_app(use_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Fund TWR Service",
        description="Israeli provident, policy and pension fund performance with time-weighted returns",
        version="1.0.0",
        lifespan=lifespan if use_lifespan else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Database and scheduler status"""
        db_status = "not_initialized"
        db_error = None
        engine = getattr(app.state, "db_engine", None)
        if engine is not None:
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
                db_status = "connected"
            except Exception as exc:
                db_status = "error"
                db_error = str(exc)

        scheduler = getattr(app.state, "scheduler", None)
        scheduler_status = "disabled"
        if scheduler is not None:
            scheduler_status = "running" if scheduler.scheduler.running else "stopped"

        return {
            "status": "healthy",
            "service": "Fund TWR",
            "version": "1.0.0",
            "services": {
                "api": "running",
                "scheduler": scheduler_status,
                "database": db_status,
            },
            "database_error": db_error,
        }

    app.include_router(funds.router, prefix="/api", tags=["Funds"])
    app.include_router(portfolio.router, prefix="/api/portfolio", tags=["Portfolio"])
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fund_twr.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
