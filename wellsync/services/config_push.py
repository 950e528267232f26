"""Phone -> watch feeds: selected questions and the recent average weight."""
from __future__ import annotations

import logging

from wellsync.services.data_layer import DataChannel
from wellsync.services.payload_codec import (
    AVERAGE_WEIGHT_PATH,
    CONFIG_QUESTIONS_PATH,
    encode_average_weight,
    encode_questions,
)
from wellsync.services.preferences_repository import PreferencesRepository
from wellsync.services.units import from_kg
from wellsync.services.wellness_repository import WellnessRepository

logger = logging.getLogger(__name__)


class QuestionConfigPublisher:
    def __init__(self, channel: DataChannel) -> None:
        self.channel = channel

    async def push(self, selection) -> bool:
        payload = encode_questions(selection)
        ok = await self.channel.publish(CONFIG_QUESTIONS_PATH, payload)
        if ok:
            logger.info("Pushed question config to watch: %s", payload)
        else:
            logger.error("Failed to push question config")
        return ok


class AverageWeightPublisher:
    """Publishes the recent average weight, in the user's unit, after wellness changes."""

    def __init__(
        self,
        channel: DataChannel,
        wellness: WellnessRepository,
        preferences: PreferencesRepository,
    ) -> None:
        self.channel = channel
        self.wellness = wellness
        self.preferences = preferences

    async def publish(self) -> bool:
        average_kg = await self.wellness.average_weight()
        unit = await self.preferences.weight_unit()
        average = None if average_kg is None else from_kg(average_kg, unit)
        ok = await self.channel.publish(AVERAGE_WEIGHT_PATH, encode_average_weight(average))
        if not ok:
            logger.error("Failed to publish average weight update")
        return ok
