"""FastAPI dependency injection for shared resources."""

import asyncio
import logging
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import ParamSpec, TypeVar

from fastapi import HTTPException

from almanac.config import Settings, current_time
from almanac.errors import ItemNotFound, ParseError
from almanac.service import CalendarService
from almanac.settings import load_preferences
from almanac.stores.calendar import CalendarStore

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@lru_cache
def get_data_path() -> Path:
    """Get the data directory path."""
    settings = get_settings()
    data_path = Path(settings.data_path)
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


@lru_cache
def get_store() -> CalendarStore:
    """Get cached calendar store; one instance so its lock covers every request."""
    return CalendarStore(get_data_path() / get_settings().db_name)


def get_service() -> CalendarService:
    """Build a service per request so preference changes made by the CLI are picked up."""
    settings = get_settings()
    return CalendarService(
        store=get_store(),
        preferences=load_preferences(get_data_path()),
        clock=lambda: current_time(settings),
    )


async def call_service(fn: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a synchronous service command off the event loop, mapping errors to HTTP."""
    try:
        return await asyncio.to_thread(fn, *args, **kwargs)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except ItemNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
