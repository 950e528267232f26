"""
Durable key -> string store, one logical namespace per device store.
Writes of whole collections go through update(), which guards the
read-modify-write with the row's version stamp and retries on conflict.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wellsync.models.kv_entry import KVEntry

logger = logging.getLogger(__name__)

USER_PROFILE_STORE = "user_profile_store"
WELLNESS_DATA_STORE = "wellness_data"
USER_PREFERENCES_STORE = "user_preferences"
WATCH_SETTINGS_STORE = "watch_settings"
SYNC_RECEIPTS_STORE = "sync_receipts"


class RecordStoreError(Exception):
    """Local store I/O failed."""


class RecordStoreConflict(RecordStoreError):
    """Optimistic update lost the race too many times."""


class RecordStore:
    """Key/value access to a single namespace of the kv_entries table."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        namespace: str,
        max_attempts: int = 5,
    ) -> None:
        self.session_maker = session_maker
        self.namespace = namespace
        self.max_attempts = max(1, max_attempts)

    async def _read(self, session: AsyncSession, key: str) -> tuple[str, int] | None:
        r = await session.execute(
            select(KVEntry.value, KVEntry.version).where(
                KVEntry.namespace == self.namespace,
                KVEntry.key == key,
            )
        )
        row = r.one_or_none()
        return (row[0], row[1]) if row else None

    async def get(self, key: str) -> str | None:
        try:
            async with self.session_maker() as session:
                row = await self._read(session, key)
        except SQLAlchemyError as e:
            raise RecordStoreError(f"read {self.namespace}/{key} failed: {e}") from e
        return row[0] if row else None

    async def get_json(self, key: str, default: Any = None) -> Any:
        raw = await self.get(key)
        if raw is None:
            return default
        return json.loads(raw)

    async def keys(self) -> list[str]:
        try:
            async with self.session_maker() as session:
                r = await session.execute(
                    select(KVEntry.key).where(KVEntry.namespace == self.namespace).order_by(KVEntry.key.asc())
                )
                return [row[0] for row in r.all()]
        except SQLAlchemyError as e:
            raise RecordStoreError(f"list {self.namespace} failed: {e}") from e

    async def put(self, key: str, value: str) -> None:
        """Unconditional write (last writer wins)."""
        await self.update(key, lambda _old: value)

    async def put_json(self, key: str, value: Any) -> None:
        await self.put(key, json.dumps(value))

    async def delete(self, key: str) -> bool:
        try:
            async with self.session_maker() as session:
                r = await session.execute(
                    delete(KVEntry).where(KVEntry.namespace == self.namespace, KVEntry.key == key)
                )
                await session.commit()
                return (r.rowcount or 0) > 0
        except SQLAlchemyError as e:
            raise RecordStoreError(f"delete {self.namespace}/{key} failed: {e}") from e

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete entries last written before cutoff (naive UTC, as updated_at). Returns the count."""
        try:
            async with self.session_maker() as session:
                r = await session.execute(
                    delete(KVEntry).where(KVEntry.namespace == self.namespace, KVEntry.updated_at < cutoff)
                )
                await session.commit()
                return r.rowcount or 0
        except SQLAlchemyError as e:
            raise RecordStoreError(f"prune {self.namespace} failed: {e}") from e

    async def create_if_absent(self, key: str, value: str) -> bool:
        """Insert key only if it does not exist. Returns True if this call created it."""
        try:
            async with self.session_maker() as session:
                session.add(KVEntry(namespace=self.namespace, key=key, value=value, version=1))
                await session.commit()
                return True
        except IntegrityError:
            return False
        except SQLAlchemyError as e:
            raise RecordStoreError(f"create {self.namespace}/{key} failed: {e}") from e

    async def update(self, key: str, fn: Callable[[str | None], str]) -> str:
        """
        Apply fn to the current value (None when missing) and store the result.
        The write only lands if nobody else wrote the key since it was read;
        otherwise the value is re-read and fn applied again.
        """
        for attempt in range(self.max_attempts):
            try:
                async with self.session_maker() as session:
                    current = await self._read(session, key)
                    new_value = fn(current[0] if current else None)
                    if current is None:
                        session.add(KVEntry(namespace=self.namespace, key=key, value=new_value, version=1))
                        try:
                            await session.commit()
                        except IntegrityError:
                            await session.rollback()
                            logger.debug("Insert race on %s/%s (attempt %d)", self.namespace, key, attempt + 1)
                            continue
                        return new_value
                    r = await session.execute(
                        update(KVEntry)
                        .where(
                            KVEntry.namespace == self.namespace,
                            KVEntry.key == key,
                            KVEntry.version == current[1],
                        )
                        .values(value=new_value, version=current[1] + 1)
                    )
                    if (r.rowcount or 0) == 1:
                        await session.commit()
                        return new_value
                    await session.rollback()
                    logger.debug("Version conflict on %s/%s (attempt %d)", self.namespace, key, attempt + 1)
            except SQLAlchemyError as e:
                raise RecordStoreError(f"update {self.namespace}/{key} failed: {e}") from e
        raise RecordStoreConflict(f"update {self.namespace}/{key} conflicted {self.max_attempts} times")

    async def update_json(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        result: list[Any] = []

        def _apply(raw: str | None) -> str:
            value = json.loads(raw) if raw is not None else default
            new_value = fn(value)
            result[:] = [new_value]
            return json.dumps(new_value)

        await self.update(key, _apply)
        return result[0]


class StoreRegistry:
    """
    Builds the RecordStore handles for one device. Created once at start-up and
    passed to every component that needs a store.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession], max_attempts: int = 5) -> None:
        self.session_maker = session_maker
        self.max_attempts = max_attempts
        self._stores: dict[str, RecordStore] = {}

    def store(self, namespace: str) -> RecordStore:
        if namespace not in self._stores:
            self._stores[namespace] = RecordStore(self.session_maker, namespace, self.max_attempts)
        return self._stores[namespace]


async def safe_read(read: Callable[[], Awaitable[Any]], fallback: Any, what: str) -> Any:
    """Run a store read; on RecordStoreError or undecodable JSON log it and return fallback."""
    try:
        return await read()
    except (RecordStoreError, ValueError) as e:
        logger.warning("Failed to read %s: %s", what, e)
        return fallback
