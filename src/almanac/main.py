"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI

from almanac import __version__
from almanac.api import entries_router, items_router, recurring_router, search_router
from almanac.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Log resolved configuration at startup for debugging."""
    s = get_settings()
    logger.info("Almanac starting, calendar at %s (timezone=%s)", s.db_path, s.timezone or "local")
    if s.db_path.exists() and not s.db_path.is_file():
        logger.error("Calendar path %s is not a file, requests will fail", s.db_path)
    yield


app = FastAPI(
    title="Almanac",
    description="Calendar driven by plain entry and search statements",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(entries_router)
app.include_router(items_router)
app.include_router(recurring_router)
app.include_router(search_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Return project information."""
    return {
        "name": "Almanac",
        "version": __version__,
        "description": "Calendar driven by plain entry and search statements",
    }


@app.get("/health")
@app.get("/api/v1/health")
async def health() -> dict[str, Any]:
    """Health check endpoint with data directory status."""
    s = get_settings()
    checks: dict[str, Any] = {"status": "ok", "calendar": str(s.db_path)}
    if s.db_path.exists() and not s.db_path.is_file():
        checks["status"] = "error"
        checks["calendar_file"] = "not a file"
    elif not s.db_path.exists():
        checks["calendar_file"] = "missing (empty calendar)"
    else:
        checks["calendar_file"] = "ok"
    return checks
