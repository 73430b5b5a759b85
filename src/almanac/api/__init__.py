"""API route modules."""

from almanac.api.entries import router as entries_router
from almanac.api.items import router as items_router
from almanac.api.recurring import router as recurring_router
from almanac.api.search import router as search_router

__all__ = ["entries_router", "items_router", "recurring_router", "search_router"]
