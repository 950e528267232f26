"""
Phone side of watch sync: every /wellness_data item becomes a new entry in
the phone's wellness history. Watch submissions are additive events; two
submissions for the same day give two entries. A re-delivery of the same
data item is recognised by its idempotency key and dropped.
"""
from __future__ import annotations

import enum
import hashlib
import json
import logging
from datetime import datetime, timedelta, tzinfo

from wellsync.services.data_layer import DataItem
from wellsync.services.payload_codec import WELLNESS_DATA_PATH, MalformedPayload, decode_entry
from wellsync.services.preferences_repository import PreferencesRepository
from wellsync.services.record_store import RecordStore, RecordStoreError
from wellsync.services.units import kg_for_storage
from wellsync.services.wellness_repository import WellnessRepository

logger = logging.getLogger(__name__)


class ReconcileOutcome(str, enum.Enum):
    APPENDED = "appended"
    IGNORED = "ignored"
    MALFORMED = "malformed"
    DUPLICATE = "duplicate"
    FAILED = "failed"


def idempotency_key(source_node: str, payload: dict) -> str:
    """sha256 over the sending node and the canonical payload."""
    canonical = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(f"{source_node}|{canonical}".encode()).hexdigest()


class WellnessReconciler:
    def __init__(
        self,
        wellness: WellnessRepository,
        preferences: PreferencesRepository,
        receipts: RecordStore | None = None,
        tz: tzinfo | None = None,
    ) -> None:
        self.wellness = wellness
        self.preferences = preferences
        self.receipts = receipts  # None disables duplicate detection
        self.tz = tz

    async def handle(self, item: DataItem) -> ReconcileOutcome:
        if item.path != WELLNESS_DATA_PATH:
            return ReconcileOutcome.IGNORED
        try:
            decoded = decode_entry(item.payload, self.tz)
        except MalformedPayload as e:
            logger.warning("Dropping malformed wellness payload from %s (seq %d): %s", item.source_node, item.seq, e)
            return ReconcileOutcome.MALFORMED

        unit = await self.preferences.weight_unit()
        weight_kg = kg_for_storage(decoded.weight, unit)
        if weight_kg <= 0:
            logger.warning("Dropping wellness payload seq %d, weight rounds to zero: %r", item.seq, decoded.weight)
            return ReconcileOutcome.MALFORMED
        entry = decoded.model_copy(update={"weight": weight_kg})

        key = None
        if self.receipts is not None:
            key = idempotency_key(item.source_node, item.payload)
            try:
                claimed = await self.receipts.create_if_absent(key, entry.id)
            except RecordStoreError as e:
                logger.error("Dropping wellness payload seq %d, receipt ledger unavailable: %s", item.seq, e)
                return ReconcileOutcome.FAILED
            if not claimed:
                logger.info("Dropping duplicate wellness payload from %s (seq %d)", item.source_node, item.seq)
                return ReconcileOutcome.DUPLICATE

        try:
            await self.wellness.add(entry)
        except RecordStoreError as e:
            logger.error("Failed to store wellness payload seq %d: %s", item.seq, e)
            await self._release(key)
            return ReconcileOutcome.FAILED
        except BaseException:
            # cancelled mid-append: let a redelivery try again
            await self._release(key)
            raise

        logger.info("Stored watch entry %s for %s", entry.id, entry.timestamp)
        return ReconcileOutcome.APPENDED

    async def _release(self, key: str | None) -> None:
        if key is None:
            return
        try:
            await self.receipts.delete(key)
        except RecordStoreError:
            logger.exception("Failed to release receipt %s", key)

    async def prune_receipts(self, max_age: timedelta) -> int:
        """Forget receipts older than max_age; redeliveries arrive long before that."""
        if self.receipts is None:
            return 0
        removed = await self.receipts.delete_older_than(datetime.utcnow() - max_age)
        if removed:
            logger.info("Pruned %d sync receipts", removed)
        return removed
