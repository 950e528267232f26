"""
Watch end of the data layer over HTTP: the phone service hosts the hub under
/datalayer; the watch publishes with PUT and picks up new items by polling
with the last sequence number it has seen.
"""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime

import httpx

from wellsync.services.data_layer import DataChannel, DataHandler, DataItem, Subscription, deliver

logger = logging.getLogger(__name__)

NODE_HEADER = "X-Node-Id"
TOKEN_HEADER = "X-Pairing-Token"


class RemoteDataChannel(DataChannel):
    def __init__(self, client: httpx.AsyncClient, base_url: str, node_id: str, pairing_token: str) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.node_id = node_id
        self.pairing_token = pairing_token
        self._subscriptions: list[Subscription] = []
        self._last_seq: dict[int, int] = {}
        self._lock = asyncio.Lock()

    @property
    def _headers(self) -> dict[str, str]:
        return {NODE_HEADER: self.node_id, TOKEN_HEADER: self.pairing_token}

    async def publish(self, path: str, payload: dict) -> bool:
        url = f"{self.base_url}/datalayer/items/{path.lstrip('/')}"
        try:
            r = await self.client.put(url, json={"payload": payload}, headers=self._headers)
            r.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Publish %s failed: %s", path, e)
            return False
        return True

    async def _fetch(self, prefix: str, since: int) -> list[DataItem]:
        r = await self.client.get(
            f"{self.base_url}/datalayer/items",
            params={"prefix": prefix, "since": since},
            headers=self._headers,
        )
        r.raise_for_status()
        data = r.json()
        return [
            DataItem(
                path=i["path"],
                payload=i["payload"],
                source_node=i["source_node"],
                seq=i["seq"],
                published_at=datetime.fromisoformat(i["published_at"]),
            )
            for i in data.get("items", [])
        ]

    async def _poll_one(self, sub: Subscription) -> int:
        since = self._last_seq.get(id(sub), 0)
        items = await self._fetch(sub.path_prefix, since)
        delivered = 0
        for item in items:
            self._last_seq[id(sub)] = max(self._last_seq.get(id(sub), 0), item.seq)
            if item.source_node == self.node_id:
                continue
            await deliver(sub.handler, item)
            delivered += 1
        return delivered

    async def subscribe(self, path_prefix: str, handler: DataHandler) -> Subscription:
        """Register, then fetch the latest items; a failed fetch is retried by the next poll()."""
        sub = Subscription(path_prefix, handler, self.node_id, self._remove)
        async with self._lock:
            self._subscriptions.append(sub)
            self._last_seq[id(sub)] = 0
            try:
                await self._poll_one(sub)
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning("Initial fetch for %s failed: %s", path_prefix, e)
        return sub

    def _remove(self, sub: Subscription) -> None:
        if sub in self._subscriptions:
            self._subscriptions.remove(sub)
        self._last_seq.pop(id(sub), None)

    async def poll(self) -> int:
        """Fetch and dispatch items newer than the last seen ones. Returns the number delivered."""
        delivered = 0
        async with self._lock:
            for sub in list(self._subscriptions):
                try:
                    delivered += await self._poll_one(sub)
                except (httpx.HTTPError, ValueError, KeyError) as e:
                    logger.warning("Poll for %s failed: %s", sub.path_prefix, e)
        return delivered
