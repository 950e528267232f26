"""
Wellness history on the phone: one JSON list under a single key of the
wellness_data store. Entries are kept in kg.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from pydantic import TypeAdapter, ValidationError

from wellsync.schemas.wellness import WellnessEntry
from wellsync.services.record_store import RecordStore, RecordStoreError

logger = logging.getLogger(__name__)

WELLNESS_LIST_KEY = "wellness_data_list_v2"
AVERAGE_WINDOW = 30

_entries_adapter = TypeAdapter(list[WellnessEntry])


def _load(raw: list | None) -> list[WellnessEntry]:
    return _entries_adapter.validate_python(raw or [])


def _dump(entries: list[WellnessEntry]) -> list[dict]:
    return [e.model_dump() for e in entries]


class WellnessRepository:
    def __init__(
        self,
        store: RecordStore,
        on_change: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self.store = store
        self.on_change = on_change

    async def list_entries(self) -> list[WellnessEntry]:
        """All entries, newest date first. A store or decode failure reads as no data."""
        try:
            raw = await self.store.get_json(WELLNESS_LIST_KEY, [])
            entries = _load(raw)
        except (RecordStoreError, ValueError, ValidationError) as e:
            logger.warning("Failed to read wellness entries: %s", e)
            return []
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)

    async def _mutate(self, fn: Callable[[list[WellnessEntry]], list[WellnessEntry]]) -> None:
        await self.store.update_json(WELLNESS_LIST_KEY, lambda raw: _dump(fn(_load(raw))), default=[])
        if self.on_change is not None:
            try:
                await self.on_change()
            except Exception:
                logger.exception("Wellness change hook failed")

    async def add(self, entry: WellnessEntry) -> WellnessEntry:
        logger.debug("Adding wellness entry %s for %s", entry.id, entry.timestamp)
        await self._mutate(lambda entries: entries + [entry])
        return entry

    async def update(self, entry: WellnessEntry) -> bool:
        found = False

        def _replace(entries: list[WellnessEntry]) -> list[WellnessEntry]:
            nonlocal found
            found = any(e.id == entry.id for e in entries)
            return [entry if e.id == entry.id else e for e in entries]

        await self._mutate(_replace)
        if not found:
            logger.warning("Update failed: entry with id %s not found", entry.id)
        return found

    async def delete(self, entry_id: str) -> bool:
        removed = False

        def _remove(entries: list[WellnessEntry]) -> list[WellnessEntry]:
            nonlocal removed
            kept = [e for e in entries if e.id != entry_id]
            removed = len(kept) != len(entries)
            return kept

        logger.debug("Deleting wellness entry %s", entry_id)
        await self._mutate(_remove)
        return removed

    async def clear_all(self) -> None:
        logger.warning("Clearing all wellness data")
        await self._mutate(lambda _entries: [])

    async def get_by_id(self, entry_id: str) -> WellnessEntry | None:
        return next((e for e in await self.list_entries() if e.id == entry_id), None)

    async def get_by_date(self, day: str) -> WellnessEntry | None:
        """First entry for the calendar day, for "edit existing day" flows."""
        return next((e for e in await self.list_entries() if e.timestamp == day), None)

    async def recent(self, limit: int) -> list[WellnessEntry]:
        return (await self.list_entries())[:limit]

    async def average_weight(self, limit: int = AVERAGE_WINDOW) -> float | None:
        """Average kg weight of the most recent entries, None with no data."""
        recent = await self.recent(limit)
        if not recent:
            return None
        return sum(e.weight for e in recent) / len(recent)
