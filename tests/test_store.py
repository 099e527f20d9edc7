import asyncio

import pytest

from storecatalog.ingest.models import Brand, Category, Product
from storecatalog.logic.store import CatalogStore, dedupe


def test_replace_all_keeps_last_duplicate():
    store = CatalogStore()
    store.replace_all(
        [Brand(id="b1", name="Old", name_ar="Old"), Brand(id="b1", name="New", name_ar="New")],
        [Category(id="c1", name="A", name_ar="A"), Category(id="c2", name="B", name_ar="B"),
         Category(id="c1", name="A2", name_ar="A2")],
        [Product(id="p1", name="One", name_ar="One", price=1), Product(id="p1", name="One", name_ar="One", price=2)],
    )
    assert [b.name for b in store.brands] == ["New"]
    assert [(c.id, c.name) for c in store.categories] == [("c1", "A2"), ("c2", "B")]
    assert [p.price for p in store.products] == [2]


def test_dedupe_returns_tuple():
    assert dedupe([]) == ()


def test_append_category_is_idempotent():
    store = CatalogStore()
    category = Category(id="c1", name="Gaming", name_ar="ألعاب")
    assert store.append_category(category) is True
    assert store.append_category(Category(id="c1", name="Dup", name_ar="Dup")) is False
    assert len(store.categories) == 1
    assert store.categories[0].name == "Gaming"


def test_mutations_never_touch_previous_snapshot():
    store = CatalogStore()
    store.replace_all([Brand(id="b1", name="Sony", name_ar="Sony")], [], [])
    snapshot = store.brands
    store.append_brand(Brand(id="b2", name="LG", name_ar="LG"))
    store.append_product(Product(id="p1", name="TV", name_ar="TV"))
    assert [b.id for b in snapshot] == ["b1"]
    assert [b.id for b in store.brands] == ["b1", "b2"]
    assert store.brands is not snapshot
    assert len(store.products) == 1


@pytest.mark.asyncio
async def test_burst_of_reload_requests_runs_once():
    calls = []

    async def reload():
        calls.append("reload")

    store = CatalogStore(reload=reload, reload_delay=0.01)
    first = store.schedule_full_reload()
    second = store.schedule_full_reload()
    last = store.schedule_full_reload()
    await last
    await asyncio.sleep(0)
    assert calls == ["reload"]
    assert first.cancelled()
    assert second.cancelled()
    assert not store.reload_pending


@pytest.mark.asyncio
async def test_cancel_pending_reload():
    calls = []

    async def reload():
        calls.append("reload")

    store = CatalogStore(reload=reload)
    task = store.schedule_full_reload(after=0.05)
    store.cancel_pending_reload()
    await asyncio.sleep(0.1)
    assert task.cancelled()
    assert calls == []


@pytest.mark.asyncio
async def test_schedule_without_reload_callback():
    with pytest.raises(RuntimeError):
        CatalogStore().schedule_full_reload()


@pytest.mark.asyncio
async def test_cancel_stops_a_reload_that_is_already_running():
    started = asyncio.Event()
    finished = []

    async def reload():
        started.set()
        await asyncio.sleep(1)
        finished.append("reload")

    store = CatalogStore(reload=reload)
    task = store.schedule_full_reload(after=0)
    await started.wait()
    assert store.reload_pending
    assert store.cancel_pending_reload() is task
    await asyncio.gather(task, return_exceptions=True)
    assert task.cancelled()
    assert finished == []
    assert not store.reload_pending
