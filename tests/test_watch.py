"""Tests for the watch side: question state, config sync and submission."""

import json

import pytest

from wellsync.schemas.questions import DEFAULT_QUESTIONS, Question
from wellsync.services.data_layer import DataItem
from wellsync.services.payload_codec import KEY_QUESTIONS_LIST, decode_entry
from wellsync.services.record_store import WATCH_SETTINGS_STORE
from wellsync.services.watch_state import DEFAULT_WEIGHT, WatchQuestionState, merge_values
from wellsync.services.watch_submission import WatchSubmitter
from wellsync.watch import WatchApp

D, A, S, W, P = Question.DIET, Question.ACTIVITY, Question.SLEEP, Question.WATER, Question.PROTEIN


def _config(*names, seq=1):
    return DataItem(
        path="/config_questions",
        payload={KEY_QUESTIONS_LIST: json.dumps(list(names))},
        source_node="phone",
        seq=seq,
    )


def test_merge_keeps_values_of_still_selected_questions():
    assert merge_values({D, S}, {D: 7, A: 3, S: 2}) == {D: 7, S: 2}


def test_merge_starts_new_questions_at_five():
    assert merge_values({D, W}, {D: 7}) == {D: 7, W: 5}


@pytest.mark.asyncio
async def test_config_item_updates_selection_and_cache(stores):
    state = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    assert state.selected == DEFAULT_QUESTIONS
    state.set_value(D, 7)
    state.set_value(A, 3)
    state.set_value(S, 2)

    await state.on_config_item(_config("DIET", "SLEEP"))
    assert state.selected == {D, S}
    assert state.values == {D: 7, S: 2}

    restored = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    await restored.load()
    assert restored.selected == {D, S}
    assert restored.values == {D: 5, S: 5}


@pytest.mark.asyncio
async def test_malformed_config_is_ignored(stores):
    state = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    bad = DataItem(path="/config_questions", payload={KEY_QUESTIONS_LIST: "nope"}, source_node="phone", seq=1)
    await state.on_config_item(bad)
    assert state.selected == DEFAULT_QUESTIONS


@pytest.mark.asyncio
async def test_average_weight_item_sets_default_weight(stores):
    state = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    assert state.average_weight == DEFAULT_WEIGHT
    await state.on_average_weight_item(
        DataItem(path="/average_weight", payload={"KEY_AVERAGE_WEIGHT": 176.6}, source_node="phone", seq=1)
    )
    assert state.average_weight == 177
    await state.on_average_weight_item(DataItem(path="/average_weight", payload={}, source_node="phone", seq=2))
    assert state.average_weight == 177


@pytest.mark.asyncio
async def test_set_value_clamps_and_skips_unselected(stores):
    state = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    state.set_value(D, 15)
    state.set_value(A, 0)
    state.set_value(W, 8)
    assert state.values == {D: 10, A: 1, S: 5}


@pytest.mark.asyncio
async def test_toggle_keeps_between_one_and_three(stores):
    state = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    state.toggle(W)
    assert state.selected == DEFAULT_QUESTIONS
    state.toggle(D)
    state.toggle(A)
    assert state.selected == {S}
    state.toggle(S)
    assert state.selected == {S}
    state.toggle(P)
    assert state.values == {S: 5, P: 5}


@pytest.mark.asyncio
async def test_submit_publishes_encoded_form(stores, hub):
    state = WatchQuestionState(stores.store(WATCH_SETTINGS_STORE))
    state.set_value(D, 8)
    submitter = WatchSubmitter(hub.channel("watch"), state, clock=lambda: 1710072000000)

    assert await submitter.submit()
    item = hub.last_item("/wellness_data")
    assert item.source_node == "watch"
    assert item.payload["KEY_WEIGHT"] == 150.0
    assert item.payload["KEY_Q1"] == 8
    assert item.payload["KEY_Q4"] == 0
    assert decode_entry(item.payload).ratings() == {D: 8, A: 5, S: 5}


@pytest.mark.asyncio
async def test_watch_follows_phone_selection_end_to_end(phone, hub, stores):
    watch = WatchApp(hub.channel("watch"), stores.store(WATCH_SETTINGS_STORE))
    await watch.start()
    await hub.drain()
    assert watch.state.selected == DEFAULT_QUESTIONS

    await phone.save_selected_questions({W, P})
    await hub.drain()
    assert watch.state.selected == {W, P}

    await phone.entry_form.create("82.0", {W: 6, P: 4}, day="2024-03-09")
    await hub.drain()
    assert watch.state.average_weight == 82

    assert await watch.submitter.submit(weight=81.0)
    await hub.drain()
    entries = await phone.wellness.list_entries()
    assert len(entries) == 2
    submitted = next(e for e in entries if e.timestamp != "2024-03-09")
    assert submitted.ratings() == {W: 5, P: 5}
    watch.stop()
