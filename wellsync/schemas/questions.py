"""Wellness questions: the one table every encoder, decoder, prompt and form reads."""

import enum
from dataclasses import dataclass


class Question(str, enum.Enum):
    DIET = "DIET"
    ACTIVITY = "ACTIVITY"
    SLEEP = "SLEEP"
    WATER = "WATER"
    PROTEIN = "PROTEIN"


@dataclass(frozen=True)
class QuestionSpec:
    question: Question
    wire_key: str  # key in the /wellness_data payload
    field: str  # WellnessEntry attribute
    label: str


QUESTION_TABLE: tuple[QuestionSpec, ...] = (
    QuestionSpec(Question.DIET, "KEY_Q1", "diet", "Diet"),
    QuestionSpec(Question.ACTIVITY, "KEY_Q2", "activity", "Activity"),
    QuestionSpec(Question.SLEEP, "KEY_Q3", "sleep", "Sleep"),
    QuestionSpec(Question.WATER, "KEY_Q4", "water", "Water"),
    QuestionSpec(Question.PROTEIN, "KEY_Q5", "protein", "Protein"),
)

SPEC_BY_QUESTION: dict[Question, QuestionSpec] = {s.question: s for s in QUESTION_TABLE}

DEFAULT_QUESTIONS: frozenset[Question] = frozenset({Question.DIET, Question.ACTIVITY, Question.SLEEP})

RATING_MIN = 0
RATING_MAX = 10


def parse_question(name: str) -> Question | None:
    """Return the Question for a name (case-insensitive) or None if unknown."""
    try:
        return Question(name.strip().upper())
    except (ValueError, AttributeError):
        return None


def ordered(questions) -> list[Question]:
    """Questions in table order."""
    selected = set(questions)
    return [s.question for s in QUESTION_TABLE if s.question in selected]
