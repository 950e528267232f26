"""Watch form submission: send-and-forget over /wellness_data."""
from __future__ import annotations

import logging
import time

from wellsync.schemas.questions import SPEC_BY_QUESTION
from wellsync.schemas.wellness import WellnessEntry
from wellsync.services.data_layer import DataChannel
from wellsync.services.payload_codec import WELLNESS_DATA_PATH, encode_entry, timestamp_to_date
from wellsync.services.watch_state import WatchQuestionState

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class WatchSubmitter:
    def __init__(self, channel: DataChannel, state: WatchQuestionState, clock=_now_ms) -> None:
        self.channel = channel
        self.state = state
        self.clock = clock

    async def submit(self, weight: float | None = None) -> bool:
        """Publish the current form. Weight defaults to the phone's average; nothing is kept locally."""
        timestamp_ms = self.clock()
        ratings = {SPEC_BY_QUESTION[q].field: v for q, v in self.state.values.items()}
        entry = WellnessEntry(
            timestamp=timestamp_to_date(timestamp_ms),
            weight=float(weight if weight is not None else self.state.average_weight),
            **ratings,
        )
        ok = await self.channel.publish(WELLNESS_DATA_PATH, encode_entry(entry, timestamp_ms))
        if ok:
            logger.info("Wellness data sent")
        else:
            logger.error("Error sending wellness data")
        return ok
