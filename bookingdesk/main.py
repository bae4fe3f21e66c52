"""
FastAPI application for the booking backend
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bookingdesk import __version__
from bookingdesk.api.v1.router import api_v1_router
from bookingdesk.config.database import SessionLocal, create_tables
from bookingdesk.config.settings import get_settings
from bookingdesk.core.middleware import correlation_id_middleware, request_logging_middleware
from bookingdesk.core.monitoring import health_router
from bookingdesk.models.availability import WorkingHours
from bookingdesk.utils.my_logging import setup_logging

settings = get_settings()

logger = logging.getLogger(__name__)


def _warn_if_schedule_empty():
    db = SessionLocal()
    try:
        if not db.query(WorkingHours).filter(WorkingHours.enabled == True).count():
            logger.warning("No enabled working hours; every day reads as closed. Run python -m bookingdesk.seed_availability")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    setup_logging()
    create_tables()
    _warn_if_schedule_empty()
    logger.info(
        f"{settings.APP_NAME} API starting up: conflict window {settings.CONFLICT_WINDOW_MINUTES}min, "
        f"default slots {settings.DEFAULT_SLOT_DURATION_MINUTES}min"
    )

    yield

    logger.info(f"{settings.APP_NAME} API shutting down")


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""

    app = FastAPI(
        title=f"{settings.APP_NAME} API",
        description="Appointment booking with rule-based availability",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "PUT"],
        allow_headers=["*"],
    )

    app.middleware("http")(correlation_id_middleware)
    app.middleware("http")(request_logging_middleware)

    app.include_router(health_router, prefix="/health", tags=["monitoring"])
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/")
    async def root():
        return {
            "service": f"{settings.APP_NAME} API",
            "version": __version__,
            "status": "running",
            "endpoints": {
                "api": "/api/v1/",
                "health": "/health",
                "docs": "/docs" if settings.DEBUG else "disabled"
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "bookingdesk.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
