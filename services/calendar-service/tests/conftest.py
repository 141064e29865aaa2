import json
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.db import Base, get_engine, get_session
from app.main import create_app
from app.store import EntryStore

MEMORY_DB = "sqlite+aiosqlite://"


class RecordingPublisher:
    """Stands in for RabbitPublisher; keeps what would have gone to the broker."""

    enabled = True

    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    async def connect(self):
        return None

    async def publish(self, routing_key: str, message_body: str):
        self.published.append((routing_key, json.loads(message_body)))

    async def close(self):
        return None

    @property
    def routing_keys(self) -> list[str]:
        return [rk for rk, _ in self.published]


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def app(publisher):
    application = create_app(database_url=MEMORY_DB, create_schema=True, rabbit_url=None)
    application.state.publisher = publisher
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest_asyncio.fixture
async def session():
    engine = get_engine(MEMORY_DB)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    factory = get_session(engine)
    async with factory() as s:
        yield s
    await engine.dispose()


@pytest.fixture
def store(session):
    return EntryStore(session)


@pytest.fixture
def make_entry(store):
    """Write a row straight through the store, skipping every business rule."""

    async def _make(user_id="user-1", start=None, end=None, type="availability", **extra):
        values = {
            "user_id": user_id,
            "type": type,
            "start_date": start or utc(2024, 3, 1),
            "end_date": end or utc(2024, 3, 5),
            "status": extra.pop("status", "available" if type == "availability" else "requested"),
            "pets": extra.pop("pets", [] if type == "availability" else ["pet-1"]),
            "reason": extra.pop("reason", "" if type == "availability" else "weekend trip"),
            "neighbor_distance_range": extra.pop("neighbor_distance_range", None),
        }
        values.update(extra)
        return await store.create(values)

    return _make
