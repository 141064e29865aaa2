import logging
from datetime import datetime

from .errors import OverlappingEntryError
from .store import EntryStore

logger = logging.getLogger(__name__)


class OverlapValidator:
    def __init__(self, store: EntryStore):
        self.store = store

    async def has_overlap(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> bool:
        conflict = await self.store.find_overlapping(user_id, start, end, exclude_id=exclude_id)
        if conflict is not None:
            logger.info(
                "[calendar-service] interval %s..%s for user %s collides with entry %s",
                start.isoformat(),
                end.isoformat(),
                user_id,
                conflict.entry_id,
            )
            return True
        return False

    async def ensure_no_overlap(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> None:
        if await self.has_overlap(user_id, start, end, exclude_id=exclude_id):
            raise OverlappingEntryError()
