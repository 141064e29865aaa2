from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .dates import to_iso
from .models import EntryStatus, EntryType


def _check_pets(pets):
    if pets is None:
        return pets
    cleaned = []
    for p in pets:
        p = (p or "").strip()
        if not p:
            raise ValueError("each pet ID must be a non-empty string")
        cleaned.append(p)
    return cleaned


class CreateEntryRequest(BaseModel):
    user_id: str = Field(min_length=1)
    type: EntryType
    # raw values; app.dates.normalize_date turns them into UTC instants
    start_date: str | datetime
    end_date: str | datetime
    status: Optional[EntryStatus] = None
    pets: Optional[List[str]] = None
    reason: Optional[str] = Field(default=None, max_length=500)
    neighbor_distance_range: Optional[int] = Field(default=None, ge=1, le=50)

    @field_validator("user_id")
    @classmethod
    def _strip_user_id(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("is required")
        return v

    @field_validator("pets")
    @classmethod
    def _pets(cls, v):
        return _check_pets(v)


class UpdateEntryRequest(BaseModel):
    """Partial update: only fields present in the body are applied."""

    user_id: Optional[str] = Field(default=None, min_length=1)
    type: Optional[EntryType] = None
    start_date: Optional[str | datetime] = None
    end_date: Optional[str | datetime] = None
    status: Optional[EntryStatus] = None
    pets: Optional[List[str]] = None
    reason: Optional[str] = Field(default=None, max_length=500)
    neighbor_distance_range: Optional[int] = Field(default=None, ge=1, le=50)

    @field_validator("pets")
    @classmethod
    def _pets(cls, v):
        return _check_pets(v)

    def patch(self) -> dict:
        return self.model_dump(exclude_unset=True)


class EntryQuery(BaseModel):
    """Typed list filter. Built by routes.entry_query, consumed by EntryStore.query."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = None
    type: Optional[EntryType] = None
    status: Optional[EntryStatus] = None
    start_from: Optional[datetime] = None  # start_date >= start_from
    end_until: Optional[datetime] = None  # end_date <= end_until
    max_distance: Optional[int] = Field(default=None, ge=1)
    skip: int = Field(default=0, ge=0)
    limit: int = Field(default=100, ge=1)


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    entry_id: str
    user_id: str
    type: EntryType
    start_date: datetime
    end_date: datetime
    status: EntryStatus
    pets: List[str] = Field(default_factory=list)
    reason: str = ""
    neighbor_distance_range: Optional[int] = None
    is_deleted: bool = False
    created_at: datetime
    updated_at: datetime

    # filled from the user/pet directories when they are reachable
    owner: Optional[dict] = None
    pet_info: Optional[List[dict]] = None

    @field_serializer("start_date", "end_date", "created_at", "updated_at")
    def _iso(self, value: datetime) -> str:
        return to_iso(value)


class DeleteResponse(BaseModel):
    message: str
    deleted_count: int


class CountBucket(BaseModel):
    key: str
    count: int


class StatsResponse(BaseModel):
    total_entries: int
    entries_by_type: List[CountBucket]
    entries_by_status: List[CountBucket]
    availability_entries: int
    request_entries: int


def envelope(data: Any, count: int | None = None) -> dict:
    body = {"success": True, "data": data}
    if count is not None:
        body["count"] = count
    return body
