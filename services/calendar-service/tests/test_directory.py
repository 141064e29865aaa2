"""DirectoryClient decoration, against a mocked user/pet directory."""

import httpx
from fastapi.testclient import TestClient

from app.directory import DirectoryClient
from app.main import create_app
from conftest import MEMORY_DB

USERS = {"owner-1": {"id": "owner-1", "name": "Ana"}}
PETS = {"pet-1": {"id": "pet-1", "name": "Rex"}, "pet-2": {"id": "pet-2", "name": "Mia"}}


def _handler(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path.startswith("/users/"):
        user = USERS.get(path.rsplit("/", 1)[-1])
        return httpx.Response(200, json=user) if user else httpx.Response(404)
    if path.startswith("/pets/"):
        pet = PETS.get(path.rsplit("/", 1)[-1])
        return httpx.Response(200, json=pet) if pet else httpx.Response(404)
    return httpx.Response(404)


def _directory(handler=_handler) -> DirectoryClient:
    return DirectoryClient(
        "http://users.test",
        "http://pets.test",
        transport=httpx.MockTransport(handler),
    )


async def test_decorate_attaches_owner_and_pets():
    items = [{"user_id": "owner-1", "pets": ["pet-1", "pet-2", "pet-missing"]}]

    out = await _directory().decorate(items)
    assert out[0]["owner"] == USERS["owner-1"]
    assert [p["name"] for p in out[0]["pet_info"]] == ["Rex", "Mia"]


async def test_unknown_user_and_no_pets_yield_none():
    out = await _directory().decorate([{"user_id": "ghost", "pets": []}])
    assert out[0]["owner"] is None
    assert out[0]["pet_info"] is None


async def test_transport_errors_yield_none():
    def boom(request):
        raise httpx.ConnectError("directory down", request=request)

    out = await _directory(boom).decorate([{"user_id": "owner-1", "pets": ["pet-1"]}])
    assert out[0]["owner"] is None
    assert out[0]["pet_info"] == []


async def test_disabled_directory_leaves_items_alone():
    items = [{"user_id": "owner-1", "pets": ["pet-1"]}]
    out = await DirectoryClient(None, None).decorate(items)
    assert out == [{"user_id": "owner-1", "pets": ["pet-1"]}]


def test_get_entry_is_decorated(publisher):
    app = create_app(database_url=MEMORY_DB, create_schema=True, rabbit_url=None, directory=_directory())
    app.state.publisher = publisher

    with TestClient(app) as client:
        created = client.post("/calendar", json={
            "user_id": "owner-1",
            "type": "request",
            "start_date": "2024-03-01",
            "end_date": "2024-03-03",
            "pets": ["pet-1"],
            "reason": "conference",
        }).json()["data"]

        data = client.get(f"/calendar/{created['entry_id']}").json()["data"]

    assert data["owner"]["name"] == "Ana"
    assert data["pet_info"] == [PETS["pet-1"]]
