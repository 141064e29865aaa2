"""Tests for the create/update/delete pipeline in CalendarService."""

import asyncio
import uuid

import pytest

from app.db import Base, get_engine, get_session
from app.errors import (
    InvalidDateError,
    MissingPetsError,
    MissingReasonError,
    NotFoundError,
    OverlappingEntryError,
    ValidationError,
)
from app.schemas import CreateEntryRequest, EntryQuery, UpdateEntryRequest
from app.service import CalendarService
from app.store import EntryStore
from conftest import utc


@pytest.fixture
def service(store, publisher):
    return CalendarService(store, publisher=publisher)


def _availability(**overrides) -> CreateEntryRequest:
    body = {
        "user_id": "sitter-1",
        "type": "availability",
        "start_date": "2024-03-01",
        "end_date": "2024-03-05",
    }
    body.update(overrides)
    return CreateEntryRequest(**body)


def _request(**overrides) -> CreateEntryRequest:
    body = {
        "user_id": "owner-1",
        "type": "request",
        "start_date": "2024-03-01",
        "end_date": "2024-03-05",
        "pets": ["pet-1"],
        "reason": "family visit",
    }
    body.update(overrides)
    return CreateEntryRequest(**body)


async def _live_count(store) -> int:
    _, total = await store.query(EntryQuery())
    return total


async def test_create_normalizes_dates_and_defaults_status(service):
    entry = await service.create(_availability())

    assert entry.start_date == utc(2024, 3, 1)
    assert entry.end_date == utc(2024, 3, 5)
    assert entry.status == "available"
    assert entry.neighbor_distance_range is None


async def test_request_defaults_to_requested(service):
    entry = await service.create(_request())
    assert entry.status == "requested"
    assert entry.pets == ["pet-1"]


async def test_explicit_status_is_kept(service):
    entry = await service.create(_availability(status="in_review"))
    assert entry.status == "in_review"


async def test_rejects_equal_start_and_end(service, store):
    with pytest.raises(ValidationError):
        await service.create(_availability(end_date="2024-03-01"))
    assert await _live_count(store) == 0


async def test_rejects_unparseable_dates(service):
    with pytest.raises(InvalidDateError):
        await service.create(_availability(start_date="yesterday-ish"))


async def test_request_rules_run_before_any_write(service, store):
    with pytest.raises(MissingPetsError):
        await service.create(_request(pets=[]))
    with pytest.raises(MissingReasonError):
        await service.create(_request(reason="  "))
    assert await _live_count(store) == 0


async def test_overlapping_create_is_rejected_without_write(service, store):
    await service.create(_availability())
    with pytest.raises(OverlappingEntryError):
        await service.create(_availability(start_date="2024-03-04", end_date="2024-03-08"))
    assert await _live_count(store) == 1


async def test_soft_deleted_interval_can_be_reused(service):
    first = await service.create(_availability())
    await service.soft_delete(first.entry_id)

    second = await service.create(_availability())
    assert second.entry_id != first.entry_id


async def test_update_end_only_merges_with_stored_start(service):
    entry = await service.create(_availability(start_date="2024-03-01", end_date="2024-03-05"))
    await service.create(_availability(start_date="2024-03-10", end_date="2024-03-12"))

    # old start (03-01) + new end (03-11) reaches into the second entry
    with pytest.raises(OverlappingEntryError):
        await service.update(entry.entry_id, UpdateEntryRequest(end_date="2024-03-11"))

    # growing into free time, and over its own old interval, is fine
    updated = await service.update(entry.entry_id, UpdateEntryRequest(end_date="2024-03-10"))
    assert updated.start_date == utc(2024, 3, 1)
    assert updated.end_date == utc(2024, 3, 10)


async def test_update_start_past_stored_end_is_rejected(service):
    entry = await service.create(_availability())
    with pytest.raises(ValidationError):
        await service.update(entry.entry_id, UpdateEntryRequest(start_date="2024-03-06"))


async def test_update_reruns_type_rules_on_merged_record(service):
    entry = await service.create(_request())

    with pytest.raises(MissingPetsError):
        await service.update(entry.entry_id, UpdateEntryRequest(pets=[]))

    avail = await service.create(_availability())
    with pytest.raises(MissingPetsError):
        await service.update(avail.entry_id, UpdateEntryRequest(type="request"))


async def test_update_without_interval_change_skips_overlap_check(service):
    entry = await service.create(_availability())
    updated = await service.update(entry.entry_id, UpdateEntryRequest(status="booked", neighbor_distance_range=12))
    assert updated.status == "booked"
    assert updated.neighbor_distance_range == 12


async def test_update_moving_owner_checks_new_owner_calendar(service):
    mine = await service.create(_availability(user_id="sitter-1"))
    await service.create(_availability(user_id="sitter-2"))

    with pytest.raises(OverlappingEntryError):
        await service.update(mine.entry_id, UpdateEntryRequest(user_id="sitter-2"))


async def test_update_rejects_nulling_required_fields(service):
    entry = await service.create(_availability())
    with pytest.raises(ValidationError):
        await service.update(entry.entry_id, UpdateEntryRequest(start_date=None))


async def test_update_missing_entry_is_not_found(service):
    with pytest.raises(NotFoundError):
        await service.update(str(uuid.uuid4()), UpdateEntryRequest(status="booked"))


async def test_soft_delete_is_idempotent(service):
    entry = await service.create(_availability())
    assert await service.soft_delete(entry.entry_id) is True
    assert await service.soft_delete(entry.entry_id) is False

    with pytest.raises(NotFoundError):
        await service.get(entry.entry_id)


async def test_soft_delete_unknown_entry_is_not_found(service):
    with pytest.raises(NotFoundError):
        await service.soft_delete(str(uuid.uuid4()))


async def test_writes_publish_domain_events(service, publisher):
    entry = await service.create(_availability())
    await service.update(entry.entry_id, UpdateEntryRequest(status="booked"))
    await service.soft_delete(entry.entry_id)
    assert await service.hard_delete(entry.entry_id) == 1

    assert publisher.routing_keys == [
        "calendar.entry_created",
        "calendar.entry_updated",
        "calendar.entry_deleted",
        "calendar.entry_deleted",
    ]
    created = publisher.published[0][1]
    assert created["data"]["entry_id"] == entry.entry_id
    assert created["data"]["start_date"] == "2024-03-01T00:00:00.000Z"
    assert [p[1]["data"]["hard"] for p in publisher.published[2:]] == [False, True]


async def test_failed_write_publishes_nothing(service, publisher):
    with pytest.raises(MissingReasonError):
        await service.create(_request(reason=None))
    assert publisher.published == []


async def test_list_entries_returns_page_and_total(service):
    await service.create(_availability(start_date="2024-03-01", end_date="2024-03-02"))
    await service.create(_availability(start_date="2024-03-03", end_date="2024-03-04"))

    entries, total = await service.list_entries(EntryQuery(limit=1))
    assert total == 2
    assert [e.start_date for e in entries] == [utc(2024, 3, 1)]


async def test_concurrent_overlapping_creates_keep_one(tmp_path):
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'calendar.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = get_session(engine)

    async def create(start, end):
        async with factory() as session:
            data = _availability(user_id="u1", start_date=start, end_date=end)
            return await CalendarService(EntryStore(session)).create(data)

    try:
        results = await asyncio.gather(
            create("2024-03-01", "2024-03-05"),
            create("2024-03-02", "2024-03-06"),
            return_exceptions=True,
        )
        async with factory() as session:
            _, total = await EntryStore(session).query(EntryQuery(user_id="u1"))
    finally:
        await engine.dispose()

    assert total == 1
    assert sorted(type(r).__name__ for r in results) == ["CalendarEntry", "OverlappingEntryError"]
