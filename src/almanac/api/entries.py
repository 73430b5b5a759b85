"""Entry statement endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from almanac.api.dependencies import call_service, get_service
from almanac.models import EntryRequest, EntryResponse
from almanac.service import CalendarService

router = APIRouter(prefix="/api/v1", tags=["entries"])


@router.post("/entries", response_model=EntryResponse, status_code=201)
async def add_entry(
    request: EntryRequest,
    service: Annotated[CalendarService, Depends(get_service)],
) -> EntryResponse:
    """Parse an entry statement and store the item (and recurring task)."""
    return await call_service(service.add_entry, request.text)
