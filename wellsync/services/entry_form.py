"""Phone entry form: validate typed input, convert to kg, save/edit/delete."""
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone

from wellsync.schemas.questions import QUESTION_TABLE, RATING_MAX, RATING_MIN, Question
from wellsync.schemas.wellness import WellnessEntry, new_entry_id
from wellsync.services.preferences_repository import PreferencesRepository
from wellsync.services.units import display_weight, kg_for_storage
from wellsync.services.wellness_repository import WellnessRepository

logger = logging.getLogger(__name__)

DEFAULT_RATING = 5.0


class FormValidationError(ValueError):
    """User input rejected before any write; message is shown inline."""


class EntryNotFound(LookupError):
    pass


def parse_weight(text: str) -> float:
    value = (text or "").strip().replace(",", ".")
    if not value:
        raise FormValidationError("Weight is required.")
    try:
        weight = float(value)
    except ValueError:
        raise FormValidationError("Weight must be a number.") from None
    if weight != weight or weight <= 0 or weight == float("inf"):
        raise FormValidationError("Weight must be a positive number.")
    return weight


def _round_rating(value: float) -> int:
    if not math.isfinite(value):
        raise FormValidationError("Ratings must be numbers.")
    # half rounds up, 4.5 -> 5
    rating = int(value + 0.5) if value >= 0 else -int(-value + 0.5)
    if not RATING_MIN <= rating <= RATING_MAX:
        raise FormValidationError(f"Ratings must be between {RATING_MIN} and {RATING_MAX}.")
    return rating


def today_utc() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


class EntryForm:
    def __init__(self, wellness: WellnessRepository, preferences: PreferencesRepository) -> None:
        self.wellness = wellness
        self.preferences = preferences

    async def _build(
        self,
        entry_id: str,
        day: str,
        weight_text: str,
        ratings: dict[Question, float],
    ) -> WellnessEntry:
        weight = parse_weight(weight_text)
        unit = await self.preferences.weight_unit()
        selected = await self.preferences.selected_questions()
        fields = {}
        for spec in QUESTION_TABLE:
            if spec.question in selected:
                fields[spec.field] = _round_rating(ratings.get(spec.question, DEFAULT_RATING))
        try:
            return WellnessEntry(id=entry_id, timestamp=day, weight=kg_for_storage(weight, unit), **fields)
        except ValueError as e:
            raise FormValidationError(str(e)) from e

    async def create(
        self,
        weight_text: str,
        ratings: dict[Question, float] | None = None,
        day: str | None = None,
    ) -> WellnessEntry:
        entry = await self._build(new_entry_id(), day or today_utc(), weight_text, ratings or {})
        await self.wellness.add(entry)
        logger.info("Created wellness entry %s for %s", entry.id, entry.timestamp)
        return entry

    async def edit(
        self,
        entry_id: str,
        weight_text: str,
        ratings: dict[Question, float] | None = None,
    ) -> WellnessEntry:
        """Full replacement under the same id and date."""
        existing = await self.wellness.get_by_id(entry_id)
        if existing is None:
            raise EntryNotFound(entry_id)
        entry = await self._build(existing.id, existing.timestamp, weight_text, ratings or {})
        await self.wellness.update(entry)
        return entry

    async def delete(self, entry_id: str) -> None:
        if not await self.wellness.delete(entry_id):
            raise EntryNotFound(entry_id)

    async def load_for_display(self, entry_id: str) -> dict | None:
        """Form values for editing: weight in the user's unit (one decimal), ratings defaulting to 5."""
        entry = await self.wellness.get_by_id(entry_id)
        if entry is None:
            return None
        unit = await self.preferences.weight_unit()
        return {
            "id": entry.id,
            "date": entry.timestamp,
            "weight": display_weight(entry.weight, unit),
            "weight_unit": unit,
            "ratings": {
                spec.question.value: float(getattr(entry, spec.field) if getattr(entry, spec.field) is not None else DEFAULT_RATING)
                for spec in QUESTION_TABLE
            },
        }
