"""
Calendar write pipeline.

create/update run, in order: date normalization, the end-after-start check,
the type-specific field rules, and the per-user overlap check. Nothing is
written until all of them pass.
"""

import logging
from enum import Enum

from shared.rabbitmq import RabbitPublisher

from .dates import normalize_date
from .errors import NotFoundError, ValidationError
from .events import ENTRY_CREATED, ENTRY_DELETED, ENTRY_UPDATED, build_event, entry_payload, to_json
from .matching import MatchingEngine
from .models import DEFAULT_STATUS, CalendarEntry
from .overlap import OverlapValidator
from .schemas import CreateEntryRequest, EntryQuery, UpdateEntryRequest
from .store import EntryStore
from .validation import EntryDraft, check_interval, needs_type_rules, validate

logger = logging.getLogger(__name__)

REQUIRED_ON_UPDATE = ("user_id", "type", "start_date", "end_date", "status")
INTERVAL_FIELDS = frozenset({"start_date", "end_date"})
OWNERSHIP_FIELDS = INTERVAL_FIELDS | {"user_id"}


def _column_values(values: dict) -> dict:
    return {k: (v.value if isinstance(v, Enum) else v) for k, v in values.items()}


class CalendarService:
    def __init__(self, store: EntryStore, publisher: RabbitPublisher | None = None):
        self.store = store
        self.overlap = OverlapValidator(store)
        self.matching = MatchingEngine(store)
        self.publisher = publisher

    async def _publish(self, event_type: str, entry: CalendarEntry, **extra):
        if not self.publisher:
            return
        event = build_event(event_type, {**entry_payload(entry), **extra})
        await self.publisher.publish(event_type, to_json(event))

    # ---- writes ----

    async def create(self, data: CreateEntryRequest) -> CalendarEntry:
        start = normalize_date(data.start_date)
        end = normalize_date(data.end_date)
        check_interval(start, end)

        draft = EntryDraft(
            user_id=data.user_id,
            type=data.type,
            start_date=start,
            end_date=end,
            status=data.status or DEFAULT_STATUS[data.type],
            pets=list(data.pets or []),
            reason=(data.reason or "").strip(),
            neighbor_distance_range=data.neighbor_distance_range,
        )
        validate(draft)
        await self.overlap.ensure_no_overlap(draft.user_id, draft.start_date, draft.end_date)

        entry = await self.store.create(_column_values(vars(draft)))
        logger.info("[calendar-service] created %s entry %s for user %s", entry.type, entry.entry_id, entry.user_id)
        await self._publish(ENTRY_CREATED, entry)
        return entry

    def _clean_patch(self, data: UpdateEntryRequest) -> dict:
        patch = data.patch()

        for key in REQUIRED_ON_UPDATE:
            if key in patch and patch[key] is None:
                raise ValidationError(f"{key} cannot be empty")

        if "user_id" in patch:
            patch["user_id"] = patch["user_id"].strip()
            if not patch["user_id"]:
                raise ValidationError("user_id cannot be empty")
        if "start_date" in patch:
            patch["start_date"] = normalize_date(patch["start_date"])
        if "end_date" in patch:
            patch["end_date"] = normalize_date(patch["end_date"])
        if "reason" in patch:
            patch["reason"] = (patch["reason"] or "").strip()
        if "pets" in patch:
            patch["pets"] = list(patch["pets"] or [])
        return patch

    async def update(self, entry_id: str, data: UpdateEntryRequest) -> CalendarEntry:
        patch = self._clean_patch(data)

        entry = await self.store.find_by_id(entry_id)
        if not entry:
            raise NotFoundError()
        if not patch:
            return entry

        # unspecified fields keep their stored values
        merged = EntryDraft.from_entry(entry).merged(patch)

        if not INTERVAL_FIELDS.isdisjoint(patch):
            check_interval(merged.start_date, merged.end_date)
        if needs_type_rules(patch):
            validate(merged)
        if not OWNERSHIP_FIELDS.isdisjoint(patch):
            await self.overlap.ensure_no_overlap(
                merged.user_id,
                merged.start_date,
                merged.end_date,
                exclude_id=entry_id,
            )

        updated = await self.store.update(entry_id, _column_values(patch))
        if not updated:
            raise NotFoundError()
        logger.info("[calendar-service] updated entry %s (%s)", entry_id, ", ".join(sorted(patch)))
        await self._publish(ENTRY_UPDATED, updated)
        return updated

    async def hard_delete(self, entry_id: str) -> int:
        entry = await self.store.find_by_id(entry_id, include_deleted=True)
        count = await self.store.hard_delete(entry_id)
        if count and entry:
            logger.info("[calendar-service] hard-deleted entry %s", entry_id)
            await self._publish(ENTRY_DELETED, entry, hard=True)
        return count

    async def soft_delete(self, entry_id: str) -> bool:
        """True when the entry was flipped now, False when it was already deleted."""
        entry = await self.store.find_by_id(entry_id, include_deleted=True)
        if not entry:
            raise NotFoundError()
        if entry.is_deleted:
            return False

        flipped = await self.store.soft_delete(entry_id)
        if flipped:
            logger.info("[calendar-service] soft-deleted entry %s", entry_id)
            await self._publish(ENTRY_DELETED, entry, hard=False)
        return flipped

    # ---- reads ----

    async def get(self, entry_id: str) -> CalendarEntry:
        entry = await self.store.find_by_id(entry_id)
        if not entry:
            raise NotFoundError()
        return entry

    async def list_entries(self, spec: EntryQuery) -> tuple[list[CalendarEntry], int]:
        return await self.store.query(spec)

    async def find_matches(self, request_entry_id: str) -> list[CalendarEntry]:
        return await self.matching.find_matches(request_entry_id)

    async def stats(self) -> dict:
        return await self.store.stats()
