"""
Watch runtime: caches the question config from the phone, keeps the form
values and sends submissions. Talks to the phone service over HTTP and polls
for new data items on an APScheduler interval job.

Run locally:
    python -m wellsync.watch
"""
import asyncio
import logging
import signal
import sys

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from wellsync.config import Settings, settings
from wellsync.db.session import init_db, make_engine, make_session_maker
from wellsync.services.data_layer import DataChannel, Subscription
from wellsync.services.data_layer_client import RemoteDataChannel
from wellsync.services.payload_codec import AVERAGE_WEIGHT_PATH, CONFIG_QUESTIONS_PATH
from wellsync.services.record_store import WATCH_SETTINGS_STORE, RecordStore
from wellsync.services.watch_state import WatchQuestionState
from wellsync.services.watch_submission import WatchSubmitter

logger = logging.getLogger(__name__)


class WatchApp:
    def __init__(self, channel: DataChannel, store: RecordStore) -> None:
        self.channel = channel
        self.state = WatchQuestionState(store)
        self.submitter = WatchSubmitter(channel, self.state)
        self.subscriptions: list[Subscription] = []

    async def start(self) -> None:
        await self.state.load()
        self.subscriptions.append(await self.channel.subscribe(CONFIG_QUESTIONS_PATH, self.state.on_config_item))
        self.subscriptions.append(await self.channel.subscribe(AVERAGE_WEIGHT_PATH, self.state.on_average_weight_item))

    def stop(self) -> None:
        for sub in self.subscriptions:
            sub.close()
        self.subscriptions.clear()


async def run(config: Settings) -> None:
    engine = make_engine(config.database_url, echo=config.debug)
    await init_db(engine)
    store = RecordStore(make_session_maker(engine), WATCH_SETTINGS_STORE, config.store_update_max_attempts)
    scheduler = AsyncIOScheduler()
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with httpx.AsyncClient(timeout=30.0) as client:
        channel = RemoteDataChannel(client, config.phone_base_url, config.watch_node_id, config.pairing_token)
        watch = WatchApp(channel, store)
        await watch.start()
        scheduler.add_job(channel.poll, "interval", seconds=config.watch_poll_interval_seconds)
        scheduler.start()
        logger.info("Watch runtime started, polling %s every %ss", config.phone_base_url, config.watch_poll_interval_seconds)
        await stop.wait()
        scheduler.shutdown()
        watch.stop()
    await engine.dispose()


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stdout,
    )
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
