"""User preferences on the phone: selected questions and weight unit."""
from __future__ import annotations

import logging

from wellsync.schemas.questions import DEFAULT_QUESTIONS, Question, ordered, parse_question
from wellsync.services.record_store import RecordStore, safe_read
from wellsync.services.units import KG, LBS

logger = logging.getLogger(__name__)

SELECTED_QUESTIONS_KEY = "selected_questions"
WEIGHT_UNIT_KEY = "weight_unit"


class PreferencesRepository:
    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def selected_questions(self) -> frozenset[Question]:
        names = await safe_read(lambda: self.store.get_json(SELECTED_QUESTIONS_KEY), None, "selected questions")
        if not isinstance(names, list):
            return DEFAULT_QUESTIONS
        return frozenset(q for q in (parse_question(n) for n in names if isinstance(n, str)) if q is not None)

    async def save_selected_questions(self, questions) -> frozenset[Question]:
        selection = frozenset(questions)
        await self.store.put_json(SELECTED_QUESTIONS_KEY, [q.value for q in ordered(selection)])
        logger.info("Saved selected questions: %s", ", ".join(q.value for q in ordered(selection)) or "none")
        return selection

    async def weight_unit(self) -> str:
        unit = await safe_read(lambda: self.store.get(WEIGHT_UNIT_KEY), None, "weight unit")
        return unit if unit in (KG, LBS) else KG

    async def save_weight_unit(self, unit: str) -> None:
        if unit not in (KG, LBS):
            raise ValueError(f"Unknown weight unit: {unit}")
        await self.store.put(WEIGHT_UNIT_KEY, unit)
