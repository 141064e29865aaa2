import logging
import uuid
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .errors import OverlappingEntryError, StorageError
from .models import OVERLAP_CONSTRAINT, CalendarEntry, EntryStatus, EntryType, utcnow
from .schemas import EntryQuery

logger = logging.getLogger(__name__)


class EntryStore:
    """
    Data access for calendar entries. No business rules live here.

    Soft-deleted rows are invisible everywhere except ``find_by_id(...,
    include_deleted=True)``, which the delete paths use.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # ---- internals ----

    @staticmethod
    def _live(stmt, include_deleted: bool = False):
        if include_deleted:
            return stmt
        return stmt.where(CalendarEntry.is_deleted.is_(False))

    async def _execute(self, stmt):
        try:
            return await self.session.execute(stmt)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("[calendar-service] query failed")
            raise StorageError(str(e)) from e

    async def _commit(self):
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if OVERLAP_CONSTRAINT in str(e.orig):
                raise OverlappingEntryError() from e
            raise StorageError(str(e.orig)) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("[calendar-service] commit failed")
            raise StorageError(str(e)) from e

    # ---- CRUD ----

    async def create(self, values: dict) -> CalendarEntry:
        entry = CalendarEntry(entry_id=str(uuid.uuid4()), is_deleted=False, **values)
        self.session.add(entry)
        await self._commit()
        return entry

    async def find_by_id(self, entry_id: str, include_deleted: bool = False) -> CalendarEntry | None:
        stmt = select(CalendarEntry).where(CalendarEntry.entry_id == entry_id)
        res = await self._execute(self._live(stmt, include_deleted))
        return res.scalar_one_or_none()

    async def update(self, entry_id: str, patch: dict) -> CalendarEntry | None:
        entry = await self.find_by_id(entry_id)
        if not entry:
            return None
        for key, value in patch.items():
            setattr(entry, key, value)
        entry.updated_at = utcnow()
        await self._commit()
        return entry

    async def soft_delete(self, entry_id: str) -> bool:
        stmt = (
            update(CalendarEntry)
            .where(CalendarEntry.entry_id == entry_id, CalendarEntry.is_deleted.is_(False))
            .values(is_deleted=True, updated_at=utcnow())
        )
        res = await self._execute(stmt)
        await self._commit()
        return res.rowcount > 0

    async def hard_delete(self, entry_id: str) -> int:
        res = await self._execute(delete(CalendarEntry).where(CalendarEntry.entry_id == entry_id))
        await self._commit()
        return res.rowcount or 0

    # ---- listing ----

    @staticmethod
    def _conditions(spec: EntryQuery) -> list:
        conds = [CalendarEntry.is_deleted.is_(False)]
        if spec.user_id:
            conds.append(CalendarEntry.user_id == spec.user_id)
        if spec.type:
            conds.append(CalendarEntry.type == spec.type.value)
        if spec.status:
            conds.append(CalendarEntry.status == spec.status.value)
        if spec.start_from:
            conds.append(CalendarEntry.start_date >= spec.start_from)
        if spec.end_until:
            conds.append(CalendarEntry.end_date <= spec.end_until)
        if spec.max_distance is not None:
            conds.append(CalendarEntry.neighbor_distance_range <= spec.max_distance)
        return conds

    async def query(self, spec: EntryQuery) -> tuple[list[CalendarEntry], int]:
        conds = self._conditions(spec)

        count_res = await self._execute(select(func.count()).select_from(CalendarEntry).where(*conds))
        total = count_res.scalar_one()

        stmt = (
            select(CalendarEntry)
            .where(*conds)
            .order_by(CalendarEntry.start_date, CalendarEntry.id)
            .offset(spec.skip)
            .limit(spec.limit)
        )
        res = await self._execute(stmt)
        return list(res.scalars().all()), total

    # ---- interval queries ----

    async def find_overlapping(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        exclude_id: str | None = None,
    ) -> CalendarEntry | None:
        """First live entry of user_id with start_date < end AND end_date > start."""
        stmt = select(CalendarEntry).where(
            CalendarEntry.user_id == user_id,
            CalendarEntry.start_date < end,
            CalendarEntry.end_date > start,
        )
        if exclude_id:
            stmt = stmt.where(CalendarEntry.entry_id != exclude_id)
        res = await self._execute(self._live(stmt).limit(1))
        return res.scalars().first()

    async def find_intersecting_availability(self, start: datetime, end: datetime) -> list[CalendarEntry]:
        """Open availability touching [start, end], boundaries included."""
        stmt = select(CalendarEntry).where(
            CalendarEntry.type == EntryType.AVAILABILITY.value,
            CalendarEntry.status == EntryStatus.AVAILABLE.value,
            CalendarEntry.start_date <= end,
            CalendarEntry.end_date >= start,
        )
        res = await self._execute(self._live(stmt))
        return list(res.scalars().all())

    # ---- reporting ----

    async def stats(self) -> dict:
        live = CalendarEntry.is_deleted.is_(False)

        total_res = await self._execute(select(func.count()).select_from(CalendarEntry).where(live))
        by_type_res = await self._execute(
            select(CalendarEntry.type, func.count()).where(live).group_by(CalendarEntry.type).order_by(CalendarEntry.type)
        )
        by_status_res = await self._execute(
            select(CalendarEntry.status, func.count()).where(live).group_by(CalendarEntry.status).order_by(CalendarEntry.status)
        )

        by_type = [{"key": k, "count": c} for k, c in by_type_res.all()]
        by_status = [{"key": k, "count": c} for k, c in by_status_res.all()]
        type_counts = {b["key"]: b["count"] for b in by_type}

        return {
            "total_entries": total_res.scalar_one(),
            "entries_by_type": by_type,
            "entries_by_status": by_status,
            "availability_entries": type_counts.get(EntryType.AVAILABILITY.value, 0),
            "request_entries": type_counts.get(EntryType.REQUEST.value, 0),
        }
