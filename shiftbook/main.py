"""FastAPI application: main entry point."""

import structlog
from contextlib import asynccontextmanager

from fastapi import FastAPI

from shiftbook.config import get_settings
from shiftbook.infrastructure.database import engine, Base
from shiftbook.core.logging import configure_logging
from shiftbook.core.middleware import setup_middleware
from shiftbook.core.exceptions import AppError, global_exception_handler

# Import all models so SQLAlchemy knows about them
from shiftbook.domain.models.shiftbook_log import ShiftBookLog, ShiftBookLogRecipient
from shiftbook.domain.models.category import (
    ShiftBookCategory,
    ShiftBookCategoryMail,
    ShiftBookCategoryTranslation,
    ShiftBookCategoryWorkcenter,
)
from shiftbook.domain.models.teams_channel import TeamsChannel
from shiftbook.domain.models.audit_log import AuditLog

from shiftbook.interfaces.api.logs import router as logs_router

settings = get_settings()

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info("Starting ShiftBook service...", env=settings.ENVIRONMENT)

    # Create DB tables (dev only, use Alembic in production)
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    yield

    logger.info("ShiftBook service stopped")


app = FastAPI(
    title="ShiftBook",
    description="Shift log service: incremental log polling, search and notification dispatch",
    version="1.0.0",
    lifespan=lifespan,
)

setup_middleware(app)

app.add_exception_handler(AppError, global_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(logs_router)


@app.get("/")
def root():
    return {
        "name": "ShiftBook",
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
    }


@app.get("/health")
def health():
    return {"status": "healthy"}
