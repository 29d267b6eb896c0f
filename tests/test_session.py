"""Tests for the detail view controller and its scan-input focus hand-off."""

import asyncio

import pytest
import pytest_asyncio

from picker.session import PickingSession
from picker.store import PickingStore


class FocusProbe:
    """Records focus hand-offs together with the store state at that moment."""

    def __init__(self):
        self.calls = []
        self.store = None

    def __call__(self):
        self.calls.append(self.store.selected)


@pytest_asyncio.fixture
async def session(fake_titles, make_title):
    fake_titles.records = [
        make_title("9780545582889", "A01"),
        make_title("9780062315007", "B01"),
    ]
    store = PickingStore(fake_titles)
    await store.load()
    probe = FocusProbe()
    probe.store = store
    return PickingSession(store, probe), probe


@pytest.mark.asyncio
async def test_scan_opens_detail_without_focus_change(session):
    sess, probe = session
    task = sess.scan("582889")
    assert sess.detail is task
    assert probe.calls == []


@pytest.mark.asyncio
async def test_close_detail_refocuses_scan_input(session):
    sess, probe = session
    sess.scan("582889")

    sess.close_detail()

    assert sess.detail is None
    # Focus moved after the selection was cleared
    assert probe.calls == [None]


@pytest.mark.asyncio
async def test_mark_from_detail_toggles_clears_then_focuses(session, fake_titles):
    sess, probe = session
    task = sess.scan("582889")
    kinds = []
    sess.store.subscribe(lambda e: kinds.append(e.kind))

    assert sess.mark_from_detail() is True
    await sess.store.drain()

    assert task.done is True
    assert kinds == ["toggled", "cleared"]
    assert probe.calls == [None]
    assert fake_titles.updates == [("9780545582889", 1)]


@pytest.mark.asyncio
async def test_mark_from_detail_can_unpick(session):
    sess, probe = session
    task = sess.scan("582889")
    sess.mark_from_detail()
    sess.scan("582889")

    assert sess.mark_from_detail() is False
    await sess.store.drain()
    assert task.done is False


@pytest.mark.asyncio
async def test_mark_without_detail_still_refocuses(session):
    sess, probe = session
    assert sess.mark_from_detail() is None
    assert probe.calls == [None]


def test_focus_is_restored_even_when_toggle_fails(fake_titles, make_title):
    """Outside an event loop toggle raises; the scan input still gets focus."""
    fake_titles.records = [make_title("9780545582889", "A01")]
    store = PickingStore(fake_titles)
    asyncio.run(store.load())
    calls = []
    sess = PickingSession(store, lambda: calls.append(True))
    sess.scan("582889")

    with pytest.raises(RuntimeError):
        sess.mark_from_detail()

    assert calls == [True]
    assert store.get("9780545582889").done is False


@pytest.mark.asyncio
async def test_open_same_task_closes_and_refocuses(session):
    sess, probe = session
    task = sess.store.tasks[0]

    assert sess.open(task) is task
    assert sess.open(task) is None
    assert probe.calls == [None]
