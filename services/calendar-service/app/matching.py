"""
Request -> availability matching.

A request is matched against every open availability window whose interval
touches the request's interval. Boundaries are inclusive here, unlike the
half-open conflict test in ``overlap.py``: an availability that ends exactly
when the request starts is still a candidate.

Candidates are ranked by the sitter's neighbor distance preference, smallest
first. Windows without a preference go last; ties fall back to the earliest
start, then the entry id, so the order never depends on the database.
"""

import logging

from .errors import NotFoundError, WrongTypeError
from .models import CalendarEntry, EntryType
from .store import EntryStore

logger = logging.getLogger(__name__)


def match_sort_key(entry: CalendarEntry):
    distance = entry.neighbor_distance_range
    return (distance is None, distance or 0, entry.start_date, entry.entry_id)


def rank_matches(candidates: list[CalendarEntry]) -> list[CalendarEntry]:
    return sorted(candidates, key=match_sort_key)


class MatchingEngine:
    def __init__(self, store: EntryStore):
        self.store = store

    async def load_request(self, request_entry_id: str) -> CalendarEntry:
        entry = await self.store.find_by_id(request_entry_id)
        if not entry:
            raise NotFoundError("Request not found")
        if entry.type != EntryType.REQUEST.value:
            raise WrongTypeError(f"Entry {request_entry_id} is of type {entry.type}, expected request")
        return entry

    async def find_matches(self, request_entry_id: str) -> list[CalendarEntry]:
        req = await self.load_request(request_entry_id)

        candidates = await self.store.find_intersecting_availability(req.start_date, req.end_date)
        ranked = rank_matches(candidates)

        logger.info(
            "[calendar-service] request %s matched %d availability entries",
            request_entry_id,
            len(ranked),
        )
        return ranked
