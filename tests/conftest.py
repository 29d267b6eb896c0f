"""Shared fixtures: an in-memory title store standing in for the title service."""

import asyncio
from typing import Optional

import pytest

from picker.errors import IngestError, PersistenceError


class FakeTitleStore:
    """Title store that keeps records in memory and records status updates.

    Set ``release`` to an asyncio.Event to hold every update until it is set,
    or fill ``gates`` with one Event per expected update to release them
    individually (first update waits on the first gate, and so on).
    """

    def __init__(self):
        self.records: list[dict] = []
        self.fetch_error: Optional[IngestError] = None
        self.fail_updates = False
        self.updates: list[tuple[str, int]] = []
        self.release: Optional[asyncio.Event] = None
        self.gates: list[asyncio.Event] = []

    async def fetch_titles(self):
        await asyncio.sleep(0)
        if self.fetch_error is not None:
            raise self.fetch_error
        return [dict(record) for record in self.records]

    async def update_status(self, barcode: str, status: int) -> None:
        if self.gates:
            await self.gates.pop(0).wait()
        elif self.release is not None:
            await self.release.wait()
        else:
            await asyncio.sleep(0)
        self.updates.append((barcode, status))
        if self.fail_updates:
            raise PersistenceError(barcode, status, "backend down")


@pytest.fixture
def fake_titles():
    return FakeTitleStore()


@pytest.fixture
def make_title():
    """Build a title record in the wire shape served by /api/titles."""

    def _make(barcode, coordinate, status=0, title=None, copies=1, id=None):
        return {
            "id": id,
            "title": title or f"Title {barcode}",
            "imageUrl": f"https://covers.example/{barcode}.jpg",
            "barcode": barcode,
            "coordinate": coordinate,
            "copies": copies,
            "status": status,
        }

    return _make
