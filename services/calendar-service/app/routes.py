import uuid
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from .dates import normalize_date
from .db import get_db
from .errors import ValidationError
from .models import EntryStatus, EntryType
from .schemas import (
    CreateEntryRequest,
    DeleteResponse,
    EntryQuery,
    EntryResponse,
    StatsResponse,
    UpdateEntryRequest,
    envelope,
)
from .service import CalendarService
from .store import EntryStore

router = APIRouter(prefix="/calendar", tags=["Calendar"])


def get_service(request: Request, db: AsyncSession = Depends(get_db)) -> CalendarService:
    return CalendarService(EntryStore(db), publisher=request.app.state.publisher)


def entry_query(
    user_id: str | None = None,
    type: EntryType | None = None,
    status: EntryStatus | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    neighbor_distance_range: int | None = Query(default=None, ge=1),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
) -> EntryQuery:
    return EntryQuery(
        user_id=(user_id or "").strip() or None,
        type=type,
        status=status,
        start_from=normalize_date(start_date) if start_date else None,
        end_until=normalize_date(end_date) if end_date else None,
        max_distance=neighbor_distance_range,
        skip=skip,
        limit=limit,
    )


def check_id(value: str, label: str = "Calendar Entry") -> str:
    try:
        uuid.UUID(value)
    except ValueError:
        raise ValidationError(f"Invalid {label} ID format")
    return value


def serialize(entry) -> dict:
    return EntryResponse.model_validate(entry).model_dump(mode="json")


async def _list(service: CalendarService, spec: EntryQuery) -> dict:
    entries, total = await service.list_entries(spec)
    return envelope([serialize(e) for e in entries], count=total)


@router.post("")
async def create_entry(data: CreateEntryRequest, service: CalendarService = Depends(get_service)):
    entry = await service.create(data)
    return envelope(serialize(entry))


@router.get("")
async def list_entries(
    spec: EntryQuery = Depends(entry_query),
    service: CalendarService = Depends(get_service),
):
    return await _list(service, spec)


@router.get("/requests/all")
async def list_requests(
    spec: EntryQuery = Depends(entry_query),
    service: CalendarService = Depends(get_service),
):
    return await _list(service, spec.model_copy(update={"type": EntryType.REQUEST}))


@router.get("/availability/all")
async def list_availability(
    spec: EntryQuery = Depends(entry_query),
    service: CalendarService = Depends(get_service),
):
    return await _list(service, spec.model_copy(update={"type": EntryType.AVAILABILITY}))


@router.get("/user/{user_id}")
async def list_user_entries(
    user_id: str,
    spec: EntryQuery = Depends(entry_query),
    service: CalendarService = Depends(get_service),
):
    return await _list(service, spec.model_copy(update={"user_id": user_id}))


@router.get("/stats/overview")
async def stats_overview(service: CalendarService = Depends(get_service)):
    stats = await service.stats()
    return envelope(StatsResponse(**stats).model_dump())


@router.get("/matching/{request_id}")
async def find_matching_availability(
    request_id: str,
    request: Request,
    service: CalendarService = Depends(get_service),
):
    check_id(request_id, "Request")
    matches = await service.find_matches(request_id)
    items = await request.app.state.directory.decorate([serialize(e) for e in matches])
    return envelope(items, count=len(items))


@router.get("/{entry_id}")
async def get_entry(entry_id: str, request: Request, service: CalendarService = Depends(get_service)):
    check_id(entry_id)
    entry = await service.get(entry_id)
    items = await request.app.state.directory.decorate([serialize(entry)])
    return envelope(items[0])


@router.put("/{entry_id}")
async def update_entry(
    entry_id: str,
    data: UpdateEntryRequest,
    service: CalendarService = Depends(get_service),
):
    check_id(entry_id)
    entry = await service.update(entry_id, data)
    return envelope({"message": "Calendar entry updated successfully", "calendar": serialize(entry)})


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, service: CalendarService = Depends(get_service)):
    check_id(entry_id)
    count = await service.hard_delete(entry_id)
    message = "Deleted successfully" if count else "Record not found"
    return envelope(DeleteResponse(message=message, deleted_count=count).model_dump())


@router.patch("/{entry_id}/soft-delete")
async def soft_delete_entry(entry_id: str, service: CalendarService = Depends(get_service)):
    check_id(entry_id)
    flipped = await service.soft_delete(entry_id)
    message = "Calendar entry has been deleted successfully" if flipped else "Calendar entry was already deleted"
    return envelope(DeleteResponse(message=message, deleted_count=1 if flipped else 0).model_dump())
