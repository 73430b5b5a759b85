"""Recurring task endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from almanac.api.dependencies import call_service, get_service
from almanac.models import EditRequest, EntryResponse, RecurringTask
from almanac.service import CalendarService

router = APIRouter(prefix="/api/v1", tags=["recurring"])


@router.get("/recurring", response_model=list[RecurringTask])
async def list_recurring(
    service: Annotated[CalendarService, Depends(get_service)],
) -> list[RecurringTask]:
    return await call_service(service.list_recurring)


@router.get("/recurring/{task_id}", response_model=RecurringTask)
async def show_recurring(
    task_id: int,
    service: Annotated[CalendarService, Depends(get_service)],
) -> RecurringTask:
    return await call_service(service.show_recurring, task_id)


@router.put("/recurring/{task_id}", response_model=EntryResponse)
async def edit_recurring(
    task_id: int,
    request: EditRequest,
    service: Annotated[CalendarService, Depends(get_service)],
) -> EntryResponse:
    """Re-enter the task's schedule. Started and completed occurrences are kept."""
    return await call_service(service.edit_recurring, task_id, request.text)


@router.delete("/recurring/{task_id}", response_model=RecurringTask)
async def delete_recurring(
    task_id: int,
    service: Annotated[CalendarService, Depends(get_service)],
) -> RecurringTask:
    """Delete the task and every occurrence it produced."""
    return await call_service(service.delete_recurring, task_id)
