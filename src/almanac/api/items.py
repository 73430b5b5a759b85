"""Calendar item endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from almanac.api.dependencies import call_service, get_service
from almanac.errors import MalformedDuration
from almanac.language.duration import Duration, parse_duration
from almanac.models import CalendarItem, EditRequest, FieldUpdateRequest
from almanac.service import CalendarService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["items"])

Service = Annotated[CalendarService, Depends(get_service)]


@router.get("/items", response_model=list[CalendarItem])
async def list_items(service: Service, include_completed: bool = False) -> list[CalendarItem]:
    """All items, including recurring occurrences that are due but not yet stored."""
    return await call_service(service.list_items, include_completed)


@router.get("/items/today", response_model=list[CalendarItem])
async def today(service: Service, include_completed: bool = True) -> list[CalendarItem]:
    return await call_service(service.today, include_completed)


@router.get("/items/now", response_model=list[CalendarItem])
async def happening_now(
    service: Service,
    well: Annotated[str | None, Query(description="Window width such as 30m or 1h")] = None,
    include_completed: bool = False,
) -> list[CalendarItem]:
    """Items around now, plus items whose reminder is due. Completed items only on request."""
    window = _parse_window(well) if well is not None else None
    return await call_service(service.now, window, include_completed)


def _parse_window(well: str) -> Duration:
    try:
        window = parse_duration(well)
    except MalformedDuration as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    if window.is_negative:
        raise HTTPException(status_code=400, detail="window cannot be negative")
    return window


@router.get("/notifications", response_model=list[CalendarItem])
async def notifications(service: Service, include_completed: bool = False) -> list[CalendarItem]:
    """Reminders whose time has come, not yet acknowledged."""
    return await call_service(service.notifications, include_completed)


@router.post("/notifications/ack", response_model=list[CalendarItem])
async def acknowledge(service: Service, include_completed: bool = False) -> list[CalendarItem]:
    """Mark every due reminder as delivered."""
    return await call_service(service.acknowledge, None, include_completed)


@router.get("/items/{item_id}", response_model=CalendarItem)
async def show(item_id: int, service: Service) -> CalendarItem:
    return await call_service(service.show, item_id)


@router.post("/items/{item_id}/complete", response_model=CalendarItem)
async def complete(item_id: int, service: Service) -> CalendarItem:
    return await call_service(service.complete, item_id)


@router.put("/items/{item_id}", response_model=CalendarItem)
async def edit(item_id: int, request: EditRequest, service: Service) -> CalendarItem:
    """Replace the item's timing, reminder and detail from a new entry statement."""
    return await call_service(service.edit, item_id, request.text)


@router.patch("/items/{item_id}/fields", response_model=CalendarItem)
async def set_field(item_id: int, request: FieldUpdateRequest, service: Service) -> CalendarItem:
    return await call_service(service.set_field, item_id, request.key, request.value)


@router.delete("/items/{item_id}", response_model=CalendarItem)
async def delete(item_id: int, service: Service) -> CalendarItem:
    """Delete one item. Deleting an occurrence leaves its recurring task in place."""
    logger.debug("Deleting item %d", item_id)
    return await call_service(service.delete, item_id)
