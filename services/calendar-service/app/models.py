from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import (
    DDL,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Index,
    Integer,
    JSON,
    String,
    event,
    func,
)
from sqlalchemy.dialects.postgresql import ExcludeConstraint
from sqlalchemy.types import TypeDecorator

from .db import Base


class EntryType(str, Enum):
    AVAILABILITY = "availability"
    REQUEST = "request"


class EntryStatus(str, Enum):
    AVAILABLE = "available"
    REQUESTED = "requested"
    BOOKED = "booked"
    CANCELLED = "cancelled"
    IN_REVIEW = "in_review"


# one live entry per user per instant; also created by alembic revision 0002
OVERLAP_CONSTRAINT = "calendar_entries_no_overlap"


DEFAULT_STATUS = {
    EntryType.AVAILABILITY: EntryStatus.AVAILABLE,
    EntryType.REQUEST: EntryStatus.REQUESTED,
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Aware-UTC datetimes in, aware-UTC datetimes out.

    SQLite has no time zone support, so values are stored there as naive UTC
    and re-tagged on the way back. PostgreSQL keeps timestamptz.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        value = value.astimezone(timezone.utc)
        if dialect.name == "sqlite":
            return value.replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class CalendarEntry(Base):
    __tablename__ = "calendar_entries"

    id = Column(Integer, primary_key=True)
    entry_id = Column(String, unique=True, nullable=False, index=True)

    user_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=False, index=True)  # availability/request

    start_date = Column(UTCDateTime(), nullable=False)
    end_date = Column(UTCDateTime(), nullable=False)

    status = Column(String, nullable=False, index=True)  # available/requested/booked/cancelled/in_review
    pets = Column(JSON, nullable=False, default=list)
    reason = Column(String(500), nullable=False, default="")
    neighbor_distance_range = Column(Integer, nullable=True)

    is_deleted = Column(Boolean, nullable=False, default=False)

    created_at = Column(UTCDateTime(), nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime(), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="ck_calendar_entries_end_after_start"),
        CheckConstraint(
            "neighbor_distance_range IS NULL OR neighbor_distance_range BETWEEN 1 AND 50",
            name="ck_calendar_entries_distance_range",
        ),
        Index("ix_calendar_entries_overlap", "user_id", "start_date", "end_date", "is_deleted"),
        ExcludeConstraint(
            (user_id, "="),
            (func.tstzrange(start_date, end_date), "&&"),
            name=OVERLAP_CONSTRAINT,
            using="gist",
            where=~is_deleted,
        ).ddl_if(dialect="postgresql"),
    )


# the gist index over user_id needs btree_gist
event.listen(
    CalendarEntry.__table__,
    "before_create",
    DDL("CREATE EXTENSION IF NOT EXISTS btree_gist").execute_if(dialect="postgresql"),
)
