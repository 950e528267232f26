"""
Encode/decode between domain records and the flat payloads sent over the
cross-device channel.

/wellness_data (watch -> phone):
    KEY_WEIGHT     number, in the user's preferred unit
    KEY_TIMESTAMP  int, epoch millis of the submission
    KEY_Q1..KEY_Q5 int, 0 = question not enabled
/config_questions (phone -> watch):
    KEY_QUESTIONS_LIST  JSON string array of question names
/average_weight (phone -> watch):
    KEY_AVERAGE_WEIGHT  number, absent when the phone has no entries
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone, tzinfo

from wellsync.schemas.questions import QUESTION_TABLE, RATING_MAX, Question, ordered, parse_question
from wellsync.schemas.wellness import WellnessEntry

logger = logging.getLogger(__name__)

WELLNESS_DATA_PATH = "/wellness_data"
CONFIG_QUESTIONS_PATH = "/config_questions"
AVERAGE_WEIGHT_PATH = "/average_weight"

KEY_WEIGHT = "KEY_WEIGHT"
KEY_TIMESTAMP = "KEY_TIMESTAMP"
KEY_QUESTIONS_LIST = "KEY_QUESTIONS_LIST"
KEY_AVERAGE_WEIGHT = "KEY_AVERAGE_WEIGHT"

ABSENT_RATING = 0


class MalformedPayload(ValueError):
    """Payload is missing a required field or carries a value of the wrong shape."""


class PayloadEncodeError(ValueError):
    """Record cannot be represented on the wire without losing information."""


def _number(payload: dict, key: str) -> float:
    value = payload.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedPayload(f"{key} missing or not a number: {value!r}")
    return value


def encode_entry(entry: WellnessEntry, timestamp_ms: int) -> dict:
    """
    Flat payload for one submission. Absent ratings are sent as 0; a literal 0
    rating would read back as absent, so it is refused.
    """
    payload: dict = {KEY_WEIGHT: entry.weight, KEY_TIMESTAMP: int(timestamp_ms)}
    for spec in QUESTION_TABLE:
        value = getattr(entry, spec.field)
        if value == ABSENT_RATING:
            raise PayloadEncodeError(f"{spec.question.value} rating 0 collides with the absent marker")
        payload[spec.wire_key] = ABSENT_RATING if value is None else int(value)
    return payload


def timestamp_to_date(timestamp_ms: int, tz: tzinfo | None = None) -> str:
    """Epoch millis -> yyyy-MM-dd in tz (process local time when None)."""
    if tz is None:
        dt = datetime.fromtimestamp(timestamp_ms / 1000)
    else:
        dt = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).astimezone(tz)
    return dt.strftime("%Y-%m-%d")


def decode_entry(payload: dict, tz: tzinfo | None = None) -> WellnessEntry:
    """Rebuild an entry (fresh id) from a /wellness_data payload. 0 ratings decode to absent."""
    if not isinstance(payload, dict):
        raise MalformedPayload(f"payload is not a map: {type(payload).__name__}")
    weight = _number(payload, KEY_WEIGHT)
    if weight <= 0:
        raise MalformedPayload(f"{KEY_WEIGHT} must be positive: {weight!r}")
    timestamp_ms = _number(payload, KEY_TIMESTAMP)
    try:
        day = timestamp_to_date(int(timestamp_ms), tz)
    except (OverflowError, OSError, ValueError) as e:
        raise MalformedPayload(f"{KEY_TIMESTAMP} out of range: {timestamp_ms!r}") from e

    ratings: dict[str, int | None] = {}
    for spec in QUESTION_TABLE:
        raw = payload.get(spec.wire_key, ABSENT_RATING)
        if isinstance(raw, bool) or not isinstance(raw, int):
            raise MalformedPayload(f"{spec.wire_key} is not an integer: {raw!r}")
        if raw == ABSENT_RATING:
            ratings[spec.field] = None
        elif 0 < raw <= RATING_MAX:
            ratings[spec.field] = raw
        else:
            raise MalformedPayload(f"{spec.wire_key} out of range: {raw!r}")

    return WellnessEntry(timestamp=day, weight=float(weight), **ratings)


def encode_questions(selection) -> dict:
    return {KEY_QUESTIONS_LIST: json.dumps([q.value for q in ordered(selection)])}


def decode_questions(payload: dict) -> frozenset[Question]:
    raw = payload.get(KEY_QUESTIONS_LIST) if isinstance(payload, dict) else None
    if not isinstance(raw, str):
        raise MalformedPayload(f"{KEY_QUESTIONS_LIST} missing or not a string")
    try:
        names = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedPayload(f"{KEY_QUESTIONS_LIST} is not valid JSON: {e}") from e
    if not isinstance(names, list) or not all(isinstance(n, str) for n in names):
        raise MalformedPayload(f"{KEY_QUESTIONS_LIST} is not a string array")
    selected = set()
    for name in names:
        q = parse_question(name)
        if q is None:
            logger.warning("Ignoring unknown question %r in config payload", name)
            continue
        selected.add(q)
    return frozenset(selected)


def encode_average_weight(average: float | None) -> dict:
    return {} if average is None else {KEY_AVERAGE_WEIGHT: float(average)}


def decode_average_weight(payload: dict) -> float | None:
    if KEY_AVERAGE_WEIGHT not in payload:
        return None
    return float(_number(payload, KEY_AVERAGE_WEIGHT))
