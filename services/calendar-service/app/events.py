import json
import uuid
from datetime import datetime, timezone

from .dates import to_iso

ENTRY_CREATED = "calendar.entry_created"
ENTRY_UPDATED = "calendar.entry_updated"
ENTRY_DELETED = "calendar.entry_deleted"

def build_event(event_type: str, data: dict) -> dict:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }

def entry_payload(entry) -> dict:
    return {
        "entry_id": entry.entry_id,
        "user_id": entry.user_id,
        "type": entry.type,
        "status": entry.status,
        "start_date": to_iso(entry.start_date),
        "end_date": to_iso(entry.end_date),
        "neighbor_distance_range": entry.neighbor_distance_range,
    }

def to_json(event: dict) -> str:
    return json.dumps(event, separators=(",", ":"), ensure_ascii=False)
