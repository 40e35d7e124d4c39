"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from .api import folders_router, media_router
from .core.config import settings, ConfigurationError, Environment
from .core.logging_config import mask_secrets, setup_logging
from .database import DATABASE_URL, get_db, init_db, is_sqlite
from .exceptions import FoldSnapException
from .middleware.exception_handler import (
    foldsnap_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .middleware.request_context import RequestContextMiddleware
from .repositories.folder_store import FolderStore
from .services.cache import build_cache

VERSION = "1.0.0"

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle for the FoldSnap API."""
    logger.info(f"Environment: {settings.environment.value}")
    try:
        settings.validate_production_config()
    except ConfigurationError as e:
        logger.critical(f"STARTUP BLOCKED: {e}")
        raise SystemExit(1) from e

    if settings.environment == Environment.DEVELOPMENT:
        for warning in settings.config_warnings():
            logger.warning(f"SECURITY: {warning}")

    logger.info(f"Connecting to database: {mask_secrets(DATABASE_URL)}")
    init_db()

    # Tests install their own cache before startup.
    if getattr(app.state, "cache", None) is None:
        app.state.cache = build_cache(settings)

    logger.info(
        "FoldSnap API started | env=%s | db=%s | auth=%s | cache=%s",
        settings.environment.value,
        "SQLite" if is_sqlite() else "server",
        "enabled" if settings.auth_enabled else "disabled",
        settings.cache_backend.value,
    )

    yield  # App runs here

    close = getattr(app.state.cache, "close", None)
    if close is not None:
        close()


app = FastAPI(
    title="FoldSnap API",
    description=(
        "Folder organisation for a media library: a folder hierarchy with "
        "drag-and-drop friendly CRUD, media assignment, and recursive media "
        "count and byte-size rollups.\n\n"
        "**Authentication:** When `AUTH_ENABLED=true`, every endpoint requires a "
        "`Bearer` token whose role may manage media (admin, editor, author). "
        "When `AUTH_ENABLED=false` (default), all endpoints are open."
    ),
    version=VERSION,
    license_info={"name": "GPL-2.0-or-later", "url": "https://www.gnu.org/licenses/gpl-2.0.html"},
    lifespan=lifespan,
)

# Middleware stack (outermost first: CORS wraps request context).
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
    expose_headers=["X-Total", "X-Total-Pages", "X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)

# Register exception handlers
app.add_exception_handler(FoldSnapException, foldsnap_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

app.include_router(folders_router)
app.include_router(media_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "FoldSnap API",
        "version": VERSION,
        "status": "running"
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint returning database status, uptime, and folder count.

    Never raises. Returns degraded status on DB failure so load balancers
    can still probe without receiving 5xx.
    """
    db_status = "ok"
    folder_count = 0
    try:
        db.execute(text("SELECT 1"))
        folder_count = FolderStore(db).count()
    except Exception:
        logger.warning("Health check database probe failed", exc_info=True)
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": VERSION,
        "folder_count": folder_count,
    }
