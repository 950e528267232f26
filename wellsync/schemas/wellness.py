"""Pydantic schemas for wellness entries (phone store and API)."""

import uuid
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wellsync.schemas.questions import QUESTION_TABLE, RATING_MAX, RATING_MIN, Question


def new_entry_id() -> str:
    return uuid.uuid4().hex


class WellnessEntry(BaseModel):
    """One submitted wellness snapshot. Weight is stored in kg; ratings absent = question not enabled."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_entry_id)
    timestamp: str  # yyyy-MM-dd
    weight: float = Field(gt=0)
    diet: int | None = Field(default=None, ge=RATING_MIN, le=RATING_MAX)
    activity: int | None = Field(default=None, ge=RATING_MIN, le=RATING_MAX)
    sleep: int | None = Field(default=None, ge=RATING_MIN, le=RATING_MAX)
    water: int | None = Field(default=None, ge=RATING_MIN, le=RATING_MAX)
    protein: int | None = Field(default=None, ge=RATING_MIN, le=RATING_MAX)

    @field_validator("timestamp")
    @classmethod
    def _check_date(cls, v: str) -> str:
        date.fromisoformat(v)
        return v

    def ratings(self) -> dict[Question, int]:
        """Present ratings only."""
        out = {}
        for spec in QUESTION_TABLE:
            value = getattr(self, spec.field)
            if value is not None:
                out[spec.question] = value
        return out


class WellnessEntryBody(BaseModel):
    """Body for creating or editing an entry from the phone form. Weight is in the user's unit, as typed."""

    weight: str
    date: str | None = None
    ratings: dict[Question, float] = Field(default_factory=dict)
