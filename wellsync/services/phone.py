"""Wiring of the phone-side components. Built once at start-up and shared through app.state."""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta, tzinfo
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wellsync.config import Settings
from wellsync.services.assistant import ChatAssistant
from wellsync.services.config_push import AverageWeightPublisher, QuestionConfigPublisher
from wellsync.services.data_layer import DataLayerHub, HubChannel, Subscription
from wellsync.services.entry_form import EntryForm
from wellsync.services.gemini_common import make_model
from wellsync.services.payload_codec import WELLNESS_DATA_PATH
from wellsync.services.preferences_repository import PreferencesRepository
from wellsync.services.profile_repository import ProfileRepository
from wellsync.services.reconciliation import WellnessReconciler
from wellsync.services.record_store import (
    SYNC_RECEIPTS_STORE,
    USER_PREFERENCES_STORE,
    USER_PROFILE_STORE,
    WELLNESS_DATA_STORE,
    RecordStoreError,
    StoreRegistry,
)
from wellsync.services.suggestions import SuggestionService
from wellsync.services.wellness_repository import WellnessRepository

logger = logging.getLogger(__name__)


def resolve_timezone(name: str) -> tzinfo | None:
    return ZoneInfo(name) if name.strip() else None


@dataclass
class PhoneServices:
    stores: StoreRegistry
    hub: DataLayerHub
    channel: HubChannel
    wellness: WellnessRepository
    preferences: PreferencesRepository
    profiles: ProfileRepository
    entry_form: EntryForm
    reconciler: WellnessReconciler
    config_publisher: QuestionConfigPublisher
    weight_publisher: AverageWeightPublisher
    assistant: ChatAssistant
    suggestions: SuggestionService
    receipt_retention: timedelta = timedelta(days=30)
    subscriptions: list[Subscription] = field(default_factory=list)

    async def start(self) -> None:
        """Listen for watch submissions and publish the current config for the watch."""
        try:
            await self.reconciler.prune_receipts(self.receipt_retention)
        except RecordStoreError as e:
            logger.warning("Failed to prune sync receipts: %s", e)
        self.subscriptions.append(await self.channel.subscribe(WELLNESS_DATA_PATH, self.reconciler.handle))
        await self.config_publisher.push(await self.preferences.selected_questions())
        await self.weight_publisher.publish()

    async def stop(self) -> None:
        for sub in self.subscriptions:
            sub.close()
        self.subscriptions.clear()
        await self.hub.drain()

    async def save_selected_questions(self, questions) -> frozenset:
        selection = await self.preferences.save_selected_questions(questions)
        await self.config_publisher.push(selection)
        return selection

    async def save_weight_unit(self, unit: str) -> None:
        await self.preferences.save_weight_unit(unit)
        await self.weight_publisher.publish()


def build_phone_services(
    session_maker: async_sessionmaker[AsyncSession],
    settings: Settings,
    hub: DataLayerHub | None = None,
    model_factory: Callable[[], object] = make_model,
) -> PhoneServices:
    stores = StoreRegistry(session_maker, settings.store_update_max_attempts)
    hub = hub or DataLayerHub()
    channel = hub.channel(settings.phone_node_id)
    preferences = PreferencesRepository(stores.store(USER_PREFERENCES_STORE))
    profiles = ProfileRepository(stores.store(USER_PROFILE_STORE))
    wellness = WellnessRepository(stores.store(WELLNESS_DATA_STORE))
    weight_publisher = AverageWeightPublisher(channel, wellness, preferences)
    wellness.on_change = weight_publisher.publish
    reconciler = WellnessReconciler(
        wellness,
        preferences,
        receipts=stores.store(SYNC_RECEIPTS_STORE) if settings.sync_dedup_enabled else None,
        tz=resolve_timezone(settings.device_timezone),
    )
    return PhoneServices(
        stores=stores,
        hub=hub,
        channel=channel,
        wellness=wellness,
        preferences=preferences,
        profiles=profiles,
        entry_form=EntryForm(wellness, preferences),
        reconciler=reconciler,
        config_publisher=QuestionConfigPublisher(channel),
        weight_publisher=weight_publisher,
        assistant=ChatAssistant(wellness, profiles, preferences, model_factory),
        suggestions=SuggestionService(wellness, profiles, preferences, model_factory),
        receipt_retention=timedelta(days=settings.sync_receipt_retention_days),
    )
