"""
Cross-device data layer: small named payloads ("data items") shared between
the paired phone and watch.

Semantics:
- last writer wins per path; the hub keeps only the latest item of each path
- at-least-once delivery, one handler call per event, no order across paths
- subscribe() hands the subscriber the latest item of every matching path and
  registers it for the next ones in one step, so nothing falls in between
"""
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DataItem:
    path: str
    payload: dict
    source_node: str
    seq: int
    published_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


DataHandler = Callable[[DataItem], Awaitable[object]]


class Subscription:
    def __init__(self, path_prefix: str, handler: DataHandler, node_id: str, on_close: Callable[["Subscription"], None]):
        self.path_prefix = path_prefix
        self.handler = handler
        self.node_id = node_id
        self._on_close = on_close
        self.closed = False

    def matches(self, path: str) -> bool:
        return path.startswith(self.path_prefix)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._on_close(self)


class DataChannel(ABC):
    """One device's view of the data layer."""

    node_id: str

    @abstractmethod
    async def publish(self, path: str, payload: dict) -> bool:
        """Send a data item to the paired device. Returns False on failure (already logged)."""

    @abstractmethod
    async def subscribe(self, path_prefix: str, handler: DataHandler) -> Subscription:
        """Fetch the latest matching items and register handler for the next ones."""


async def deliver(handler: DataHandler, item: DataItem) -> None:
    """Run one handler for one item; a failing handler never breaks the channel."""
    try:
        await handler(item)
    except Exception:
        logger.exception("Data handler failed for %s (seq %d)", item.path, item.seq)


class DataLayerHub:
    """In-process data layer shared by the nodes attached to it."""

    def __init__(self) -> None:
        self._items: dict[str, DataItem] = {}
        self._subscriptions: list[Subscription] = []
        self._seq = 0
        self._lock = asyncio.Lock()
        self._pending: set[asyncio.Task] = set()

    @property
    def latest_seq(self) -> int:
        return self._seq

    def channel(self, node_id: str) -> "HubChannel":
        return HubChannel(self, node_id)

    def last_item(self, path: str) -> DataItem | None:
        return self._items.get(path)

    def items_since(self, path_prefix: str = "", since: int = 0) -> list[DataItem]:
        items = [i for i in self._items.values() if i.path.startswith(path_prefix) and i.seq > since]
        return sorted(items, key=lambda i: i.seq)

    def _schedule(self, subs: list[Subscription], item: DataItem) -> None:
        for sub in subs:
            task = asyncio.create_task(deliver(sub.handler, item))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    def _targets(self, item: DataItem) -> list[Subscription]:
        return [s for s in self._subscriptions if not s.closed and s.matches(item.path) and s.node_id != item.source_node]

    async def put(self, path: str, payload: dict, source_node: str) -> DataItem:
        async with self._lock:
            self._seq += 1
            item = DataItem(path=path, payload=dict(payload), source_node=source_node, seq=self._seq)
            self._items[path] = item
            targets = self._targets(item)
        logger.debug("Data item %s seq=%d from %s -> %d subscriber(s)", path, item.seq, source_node, len(targets))
        self._schedule(targets, item)
        return item

    async def add_subscription(self, path_prefix: str, handler: DataHandler, node_id: str) -> Subscription:
        sub = Subscription(path_prefix, handler, node_id, self._remove)
        async with self._lock:
            self._subscriptions.append(sub)
            current = [i for i in self.items_since(path_prefix) if i.source_node != node_id]
        for item in current:
            self._schedule([sub], item)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)

    async def redeliver(self, path: str) -> bool:
        """Deliver the latest item of path again, as the transport may do."""
        item = self._items.get(path)
        if item is None:
            return False
        self._schedule(self._targets(item), item)
        return True

    async def drain(self) -> None:
        """Wait until every scheduled delivery has run."""
        while self._pending:
            await asyncio.gather(*list(self._pending))


class HubChannel(DataChannel):
    def __init__(self, hub: DataLayerHub, node_id: str) -> None:
        self.hub = hub
        self.node_id = node_id

    async def publish(self, path: str, payload: dict) -> bool:
        try:
            await self.hub.put(path, payload, self.node_id)
        except Exception:
            logger.exception("Failed to publish %s from %s", path, self.node_id)
            return False
        return True

    async def subscribe(self, path_prefix: str, handler: DataHandler) -> Subscription:
        return await self.hub.add_subscription(path_prefix, handler, self.node_id)
