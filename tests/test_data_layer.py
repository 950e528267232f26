"""Tests for the in-process data layer hub."""

import pytest

from wellsync.services.data_layer import DataLayerHub


class Recorder:
    def __init__(self):
        self.items = []

    async def __call__(self, item):
        self.items.append(item)


@pytest.mark.asyncio
async def test_publish_reaches_other_node_only():
    hub = DataLayerHub()
    phone, watch = hub.channel("phone"), hub.channel("watch")
    on_phone, on_watch = Recorder(), Recorder()
    await phone.subscribe("/wellness_data", on_phone)
    await watch.subscribe("/wellness_data", on_watch)

    assert await watch.publish("/wellness_data", {"KEY_WEIGHT": 70})
    await hub.drain()

    assert [i.payload for i in on_phone.items] == [{"KEY_WEIGHT": 70}]
    assert on_phone.items[0].source_node == "watch"
    assert on_watch.items == []


@pytest.mark.asyncio
async def test_subscribe_delivers_latest_item_per_path():
    hub = DataLayerHub()
    phone = hub.channel("phone")
    await phone.publish("/config_questions", {"KEY_QUESTIONS_LIST": '["DIET"]'})
    await phone.publish("/config_questions", {"KEY_QUESTIONS_LIST": '["SLEEP"]'})

    seen = Recorder()
    await hub.channel("watch").subscribe("/config_questions", seen)
    await hub.drain()

    assert [i.payload["KEY_QUESTIONS_LIST"] for i in seen.items] == ['["SLEEP"]']
    assert hub.last_item("/config_questions").seq == 2


@pytest.mark.asyncio
async def test_prefix_filters_paths():
    hub = DataLayerHub()
    seen = Recorder()
    await hub.channel("watch").subscribe("/average_weight", seen)
    await hub.channel("phone").publish("/config_questions", {"KEY_QUESTIONS_LIST": "[]"})
    await hub.drain()
    assert seen.items == []


@pytest.mark.asyncio
async def test_closed_subscription_gets_nothing():
    hub = DataLayerHub()
    seen = Recorder()
    sub = await hub.channel("phone").subscribe("/wellness_data", seen)
    sub.close()
    await hub.channel("watch").publish("/wellness_data", {"KEY_WEIGHT": 70})
    await hub.drain()
    assert seen.items == []


@pytest.mark.asyncio
async def test_redeliver_repeats_the_same_item():
    hub = DataLayerHub()
    seen = Recorder()
    await hub.channel("phone").subscribe("/wellness_data", seen)
    await hub.channel("watch").publish("/wellness_data", {"KEY_WEIGHT": 70})
    assert await hub.redeliver("/wellness_data")
    assert not await hub.redeliver("/nothing_here")
    await hub.drain()
    assert len(seen.items) == 2
    assert seen.items[0] == seen.items[1]


@pytest.mark.asyncio
async def test_failing_handler_does_not_break_others():
    hub = DataLayerHub()
    seen = Recorder()

    async def broken(item):
        raise RuntimeError("boom")

    await hub.channel("phone").subscribe("/wellness_data", broken)
    await hub.channel("phone").subscribe("/wellness_data", seen)
    await hub.channel("watch").publish("/wellness_data", {"KEY_WEIGHT": 70})
    await hub.drain()
    assert len(seen.items) == 1


@pytest.mark.asyncio
async def test_items_since_orders_by_seq():
    hub = DataLayerHub()
    await hub.put("/b", {"v": 1}, "phone")
    await hub.put("/a", {"v": 2}, "phone")
    await hub.put("/b", {"v": 3}, "phone")
    assert [(i.path, i.seq) for i in hub.items_since()] == [("/a", 2), ("/b", 3)]
    assert [i.seq for i in hub.items_since(since=2)] == [3]
    assert hub.latest_seq == 3
