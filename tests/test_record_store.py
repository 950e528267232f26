"""Tests for the key/value record store and its optimistic update."""

import asyncio
from datetime import datetime, timedelta

import pytest

from wellsync.services.record_store import (
    WELLNESS_DATA_STORE,
    RecordStore,
    RecordStoreConflict,
    RecordStoreError,
    safe_read,
)


@pytest.mark.asyncio
async def test_put_get_delete(stores):
    store = stores.store("user_preferences")
    assert await store.get("weight_unit") is None
    await store.put("weight_unit", "lbs")
    assert await store.get("weight_unit") == "lbs"
    await store.put("weight_unit", "kg")
    assert await store.get("weight_unit") == "kg"
    assert await store.keys() == ["weight_unit"]
    assert await store.delete("weight_unit") is True
    assert await store.delete("weight_unit") is False


@pytest.mark.asyncio
async def test_namespaces_are_separate(stores):
    await stores.store("a").put("k", "1")
    assert await stores.store("b").get("k") is None
    assert stores.store("a") is stores.store("a")


@pytest.mark.asyncio
async def test_create_if_absent_claims_once(stores):
    store = stores.store("sync_receipts")
    assert await store.create_if_absent("abc", "entry-1") is True
    assert await store.create_if_absent("abc", "entry-2") is False
    assert await store.get("abc") == "entry-1"


@pytest.mark.asyncio
async def test_concurrent_updates_are_not_lost(stores):
    store = stores.store(WELLNESS_DATA_STORE)

    async def append(n):
        await store.update_json("list", lambda items: items + [n], default=[])

    await asyncio.gather(*(append(n) for n in range(5)))
    assert sorted(await store.get_json("list")) == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_update_raises_conflict_when_version_keeps_moving(session_maker):
    store = RecordStore(session_maker, "conflict", max_attempts=2)
    other = RecordStore(session_maker, "conflict")
    await store.put("k", "0")
    read = store._read

    async def read_then_interfere(session, key):
        row = await read(session, key)
        await other.put(key, "interloper")
        return row

    store._read = read_then_interfere
    with pytest.raises(RecordStoreConflict):
        await store.update("k", lambda old: "mine")
    assert await other.get("k") == "interloper"


@pytest.mark.asyncio
async def test_safe_read_falls_back_on_store_error():
    async def broken():
        raise RecordStoreError("disk gone")

    assert await safe_read(broken, "fallback", "thing") == "fallback"


@pytest.mark.asyncio
async def test_safe_read_falls_back_on_bad_json(stores):
    store = stores.store("user_preferences")
    await store.put("selected_questions", "{not json")
    assert await safe_read(lambda: store.get_json("selected_questions"), None, "selection") is None


@pytest.mark.asyncio
async def test_delete_older_than_only_touches_own_namespace(stores):
    receipts = stores.store("sync_receipts")
    other = stores.store("user_preferences")
    await receipts.put("a", "1")
    await other.put("b", "2")

    assert await receipts.delete_older_than(datetime.utcnow() - timedelta(days=1)) == 0
    assert await receipts.delete_older_than(datetime.utcnow() + timedelta(minutes=1)) == 1
    assert await receipts.keys() == []
    assert await other.get("b") == "2"
