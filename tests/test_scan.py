"""Tests for scan resolution and the single-selection register."""

import pytest
import pytest_asyncio

from picker.errors import UnknownTaskError
from picker.store import PickingStore


@pytest_asyncio.fixture
async def store(fake_titles, make_title):
    fake_titles.records = [
        make_title("9780545582889", "A01", title="Wings of Fire"),
        make_title("9780439023481", "A02", title="The Hunger Games"),
        make_title("1110439023481", "A03", title="The Hunger Games"),
        make_title("9780062315007", "B01", title="The Alchemist"),
    ]
    store = PickingStore(fake_titles)
    await store.load()
    return store


def _kinds(store):
    events = []
    store.subscribe(events.append)
    return events


@pytest.mark.asyncio
async def test_suffix_scan_resolves(store):
    task = store.resolve("582889")
    assert task is not None
    assert task.barcode == "9780545582889"
    assert store.selected is task


@pytest.mark.asyncio
async def test_exact_scan_resolves(store):
    assert store.resolve("9780062315007").title == "The Alchemist"


@pytest.mark.asyncio
async def test_non_suffix_does_not_resolve(store):
    assert store.resolve("99582889") is None
    assert store.resolve("978054558") is None


@pytest.mark.asyncio
async def test_ambiguous_suffix_takes_first_in_list_order(store):
    task = store.resolve("0439023481")
    assert task.barcode == "9780439023481"


@pytest.mark.asyncio
async def test_scan_whitespace_is_trimmed(store):
    assert store.resolve(" 582889\n").barcode == "9780545582889"


@pytest.mark.asyncio
async def test_empty_scan_matches_nothing(store):
    assert store.resolve("") is None
    assert store.resolve("   ") is None


@pytest.mark.asyncio
async def test_resolve_is_idempotent(store):
    events = _kinds(store)
    first = store.resolve("315007")
    second = store.resolve("315007")

    assert first is second
    assert store.selected is first
    assert [e.kind for e in events] == ["selected"]


@pytest.mark.asyncio
async def test_not_found_keeps_selection_and_list(store):
    selected = store.resolve("582889")
    before = [(t.barcode, t.done) for t in store.tasks]
    events = _kinds(store)

    assert store.resolve("000000") is None

    assert store.selected is selected
    assert [(t.barcode, t.done) for t in store.tasks] == before
    assert events == []


@pytest.mark.asyncio
async def test_scan_never_changes_status(store):
    task = store.resolve("582889")
    assert task.done is False


@pytest.mark.asyncio
async def test_select_replaces_previous_selection(store):
    a, b = store.tasks[0], store.tasks[1]
    store.select(a)
    store.select(b)
    assert store.selected is b


@pytest.mark.asyncio
async def test_select_same_task_twice_clears(store):
    a = store.tasks[0]
    events = _kinds(store)

    assert store.select(a) is a
    assert store.select(a) is None

    assert store.selected is None
    assert [e.kind for e in events] == ["selected", "cleared"]


@pytest.mark.asyncio
async def test_selection_uses_barcode_identity(store):
    """Two tasks with the same title are different selections."""
    first, second = store.tasks[1], store.tasks[2]
    assert first.title == second.title

    store.select(first)
    assert store.select(second) is second
    assert store.selected is second


@pytest.mark.asyncio
async def test_select_accepts_barcode(store):
    assert store.select("9780062315007").title == "The Alchemist"


@pytest.mark.asyncio
async def test_select_unknown_task_raises(store):
    with pytest.raises(UnknownTaskError):
        store.select("404")


@pytest.mark.asyncio
async def test_clear_is_idempotent(store):
    store.resolve("582889")
    events = _kinds(store)

    store.clear()
    store.clear()

    assert store.selected is None
    assert [e.kind for e in events] == ["cleared"]


@pytest.mark.asyncio
async def test_reload_keeps_selection_when_barcode_survives(store, fake_titles):
    store.resolve("582889")
    await store.load()
    assert store.selected is not None
    assert store.selected.barcode == "9780545582889"
    assert store.selected is store.get("9780545582889")


@pytest.mark.asyncio
async def test_reload_drops_selection_when_barcode_is_gone(store, fake_titles):
    store.resolve("582889")
    fake_titles.records = fake_titles.records[1:]
    await store.load()
    assert store.selected is None


@pytest.mark.asyncio
async def test_reload_dropping_selection_emits_cleared(store, fake_titles):
    store.resolve("582889")
    events = _kinds(store)
    fake_titles.records = fake_titles.records[1:]

    await store.load()

    assert [e.kind for e in events] == ["loaded", "cleared"]
    assert events[-1].task.barcode == "9780545582889"


@pytest.mark.asyncio
async def test_reload_without_selection_emits_only_loaded(store):
    events = _kinds(store)
    await store.load()
    assert [e.kind for e in events] == ["loaded"]
