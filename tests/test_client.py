"""Tests for the HTTP title store client."""

import json

import httpx
import pytest
from sqlmodel import Session, create_engine

from picker.client import HttpTitleStore
from picker.errors import IngestError, PersistenceError
from picker.store import PickingStore
from server.database import init_db
from server.repository import Repository


def _store(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://titles")
    return HttpTitleStore("http://titles", client=client)


@pytest.mark.asyncio
async def test_fetch_titles_returns_payload():
    payload = [{"id": 1, "title": "A", "barcode": "1", "coordinate": "A01", "copies": 1, "status": 0}]

    def handler(request):
        assert request.url.path == "/api/titles"
        return httpx.Response(200, json=payload)

    assert await _store(handler).fetch_titles() == payload


@pytest.mark.asyncio
async def test_fetch_titles_server_error_is_ingest_error():
    store = _store(lambda request: httpx.Response(500, json={"error": "Internal server error"}))
    with pytest.raises(IngestError, match="500"):
        await store.fetch_titles()


@pytest.mark.asyncio
async def test_fetch_titles_invalid_json_is_ingest_error():
    store = _store(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(IngestError):
        await store.fetch_titles()


@pytest.mark.asyncio
async def test_fetch_titles_connection_error_is_ingest_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(IngestError):
        await _store(handler).fetch_titles()


@pytest.mark.asyncio
async def test_update_status_posts_barcode_and_status():
    seen = []

    def handler(request):
        seen.append((request.method, request.url.path, json.loads(request.content)))
        return httpx.Response(200, json={"message": "Status updated"})

    await _store(handler).update_status("9780545582889", 1)
    assert seen == [("POST", "/api/updateStatus", {"barcode": "9780545582889", "status": 1})]


@pytest.mark.asyncio
async def test_update_status_refused_is_persistence_error():
    store = _store(lambda request: httpx.Response(404, json={"detail": "Title not found"}))
    with pytest.raises(PersistenceError) as excinfo:
        await store.update_status("404", 0)
    assert excinfo.value.barcode == "404"
    assert excinfo.value.status == 0


@pytest.mark.asyncio
async def test_update_status_timeout_is_persistence_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(PersistenceError):
        await _store(handler).update_status("1", 1)


@pytest.fixture
def service_db(tmp_path, monkeypatch):
    db_file = tmp_path / "picklist.db"
    engine = create_engine(f"sqlite:///{db_file}", connect_args={"check_same_thread": False})
    monkeypatch.setattr("server.database.DB_PATH", db_file, raising=True)
    monkeypatch.setattr("server.database.engine", engine, raising=True)
    init_db()

    with Session(engine) as session:
        repo = Repository(session)
        repo.upsert_title(barcode="9780062315007", title="The Alchemist", image_url="", coordinate="B01", copies=1)
        repo.upsert_title(barcode="9780545582889", title="Wings of Fire", image_url="", coordinate="A01", copies=2)
        repo.commit()
    return engine


@pytest.mark.asyncio
async def test_store_round_trip_against_service(service_db):
    from server.api import app

    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://titles")
    async with HttpTitleStore("http://titles", client=client) as titles:
        store = PickingStore(titles)
        await store.load()
        assert [t.coordinate for t in store.tasks] == ["A01", "B01"]

        store.toggle(store.resolve("582889"))
        await store.drain()
    await client.aclose()

    with Session(service_db) as session:
        assert Repository(session).get_title_by_barcode("9780545582889").status == 1
