"""
Watch side question state. The phone owns the selection; the watch caches it
in its watch_settings store and keeps the per-question values in memory only.
"""
from __future__ import annotations

import logging

from wellsync.schemas.questions import DEFAULT_QUESTIONS, Question, ordered, parse_question
from wellsync.services.data_layer import DataItem
from wellsync.services.payload_codec import (
    AVERAGE_WEIGHT_PATH,
    CONFIG_QUESTIONS_PATH,
    MalformedPayload,
    decode_average_weight,
    decode_questions,
)
from wellsync.services.record_store import RecordStore, RecordStoreError, safe_read

logger = logging.getLogger(__name__)

SELECTED_QUESTIONS_KEY = "selected_questions"
DEFAULT_VALUE = 5
VALUE_MIN = 1
VALUE_MAX = 10
MIN_LOCAL_SELECTION = 1
MAX_LOCAL_SELECTION = 3
DEFAULT_WEIGHT = 150


def merge_values(selection, old_values: dict[Question, int]) -> dict[Question, int]:
    """Keep the value of every question still selected; newly selected ones start at 5."""
    return {q: old_values.get(q, DEFAULT_VALUE) for q in ordered(selection)}


class WatchQuestionState:
    def __init__(self, store: RecordStore) -> None:
        self.store = store
        self.selected: frozenset[Question] = DEFAULT_QUESTIONS
        self.values: dict[Question, int] = merge_values(DEFAULT_QUESTIONS, {})
        self.average_weight: int = DEFAULT_WEIGHT

    async def load(self) -> None:
        names = await safe_read(lambda: self.store.get_json(SELECTED_QUESTIONS_KEY), None, "watch selection")
        if isinstance(names, list):
            saved = frozenset(q for q in (parse_question(n) for n in names if isinstance(n, str)) if q)
            self.apply_selection(saved)

    def apply_selection(self, selection) -> None:
        self.selected = frozenset(selection)
        self.values = merge_values(self.selected, self.values)

    async def on_config_item(self, item: DataItem) -> None:
        if item.path != CONFIG_QUESTIONS_PATH:
            return
        try:
            selection = decode_questions(item.payload)
        except MalformedPayload as e:
            logger.warning("Dropping malformed question config (seq %d): %s", item.seq, e)
            return
        self.apply_selection(selection)
        try:
            await self.store.put_json(SELECTED_QUESTIONS_KEY, [q.value for q in ordered(selection)])
        except RecordStoreError as e:
            logger.error("Failed to cache question config: %s", e)
        logger.info("Question config applied: %s", {q.value: v for q, v in self.values.items()})

    async def on_average_weight_item(self, item: DataItem) -> None:
        if item.path != AVERAGE_WEIGHT_PATH:
            return
        try:
            average = decode_average_weight(item.payload)
        except MalformedPayload as e:
            logger.warning("Dropping malformed average weight (seq %d): %s", item.seq, e)
            return
        if average is not None:
            self.average_weight = round(average)

    def set_value(self, question: Question, value: int) -> None:
        if question not in self.selected:
            return
        self.values[question] = max(VALUE_MIN, min(VALUE_MAX, int(value)))

    def toggle(self, question: Question) -> None:
        """Local edit of the form's questions; never sent back to the phone."""
        selection = set(self.selected)
        if question in selection:
            if len(selection) > MIN_LOCAL_SELECTION:
                selection.remove(question)
        elif len(selection) < MAX_LOCAL_SELECTION:
            selection.add(question)
        self.apply_selection(selection)
