from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import List, Optional

from .errors import MissingPetsError, MissingReasonError, ValidationError
from .models import EntryStatus, EntryType

# patch keys that make the type-specific rules worth re-running on update
TYPE_RULE_FIELDS = frozenset({"type", "pets", "reason"})


@dataclass
class EntryDraft:
    """A calendar entry as it would be written: normalized, not yet persisted."""

    user_id: str
    type: EntryType
    start_date: datetime
    end_date: datetime
    status: Optional[EntryStatus] = None
    pets: List[str] = field(default_factory=list)
    reason: str = ""
    neighbor_distance_range: Optional[int] = None

    @classmethod
    def from_entry(cls, entry) -> "EntryDraft":
        return cls(
            user_id=entry.user_id,
            type=EntryType(entry.type),
            start_date=entry.start_date,
            end_date=entry.end_date,
            status=EntryStatus(entry.status),
            pets=list(entry.pets or []),
            reason=entry.reason or "",
            neighbor_distance_range=entry.neighbor_distance_range,
        )

    def merged(self, patch: dict) -> "EntryDraft":
        return replace(self, **patch)


def check_interval(start: datetime, end: datetime) -> None:
    if end <= start:
        raise ValidationError("End date must be after start date.")


def validate(draft: EntryDraft) -> None:
    if draft.type == EntryType.REQUEST:
        if not draft.pets:
            raise MissingPetsError()
        if not (draft.reason or "").strip():
            raise MissingReasonError()
    # availability: nothing beyond the schema; neighbor_distance_range is optional


def needs_type_rules(patch: dict) -> bool:
    return not TYPE_RULE_FIELDS.isdisjoint(patch)
