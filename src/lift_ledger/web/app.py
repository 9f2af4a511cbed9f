"""FastAPI application for the lift-ledger JSON API."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..config import APP_VERSION, configure_logging, get_settings
from ..db.engine import get_db_path, init_db
from ..db.repositories import ScheduleRepository
from ..errors import LiftLedgerError
from ..services.search import SearchCache
from .routers import admin, analytics, exercises, leaderboard, schedule, workout

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the schema on startup."""
    await init_db(app.state.db_path)
    yield


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="lift-ledger",
        description="Workout tracking with a shared weekly schedule",
        version=APP_VERSION,
        lifespan=lifespan,
    )

    app.state.db_path = db_path or get_db_path()
    app.state.search_cache = SearchCache(max_size=settings.search_cache_size)

    @app.exception_handler(LiftLedgerError)
    async def handle_app_error(request: Request, exc: LiftLedgerError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid input", "details": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # Include routers
    app.include_router(exercises.router)
    app.include_router(admin.router)
    app.include_router(schedule.router)
    app.include_router(workout.router)
    app.include_router(analytics.router)
    app.include_router(leaderboard.router)

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        try:
            schedule_count = await ScheduleRepository(request.app.state.db_path).count_days()
        except Exception:
            logger.exception("Health check could not reach the database")
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "version": APP_VERSION, "database": "unavailable"},
            )
        return {
            "status": "healthy",
            "version": APP_VERSION,
            "database": "connected",
            "schedule_count": schedule_count,
        }

    return app
