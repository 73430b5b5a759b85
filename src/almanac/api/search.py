"""Search statement endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from almanac.api.dependencies import call_service, get_service
from almanac.models import CalendarItem, SearchRequest
from almanac.service import CalendarService

router = APIRouter(prefix="/api/v1", tags=["search"])


@router.post("/search", response_model=list[CalendarItem])
async def search(
    request: SearchRequest,
    service: Annotated[CalendarService, Depends(get_service)],
) -> list[CalendarItem]:
    """Items matching every clause of the search statement."""
    return await call_service(service.search, request.text, request.include_completed)
