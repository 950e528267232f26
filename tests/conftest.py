"""Pytest configuration and shared fixtures: SQLite store per test, fake Gemini, phone app client."""

import os

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("PAIRING_TOKEN", "test-pairing-token")
os.environ.setdefault("GOOGLE_GEMINI_API_KEY", "")

from wellsync.config import Settings
from wellsync.db.session import init_db, make_engine, make_session_maker
from wellsync.main import create_app
from wellsync.services.data_layer import DataLayerHub
from wellsync.services.phone import build_phone_services
from wellsync.services.record_store import StoreRegistry

PAIRING_TOKEN = "test-pairing-token"


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeChat:
    def __init__(self, model, history):
        self.model = model
        self.history = history

    def send_message(self, text):
        self.model.sent.append(text)
        if self.model.error is not None:
            raise self.model.error
        return FakeResponse(self.model.reply)


class FakeModel:
    """Stands in for genai.GenerativeModel: start_chat().send_message() and generate_content()."""

    def __init__(self, reply="Keep it up!", error=None):
        self.reply = reply
        self.error = error
        self.sent = []
        self.prompts = []
        self.histories = []

    def start_chat(self, history):
        self.histories.append(history)
        return FakeChat(self, history)

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return FakeResponse(self.reply)


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'wellsync.db'}",
        "pairing_token": PAIRING_TOKEN,
        "device_timezone": "UTC",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def session_maker(settings):
    engine = make_engine(settings.database_url)
    await init_db(engine)
    yield make_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def stores(session_maker) -> StoreRegistry:
    return StoreRegistry(session_maker)


@pytest.fixture
def fake_model() -> FakeModel:
    return FakeModel()


@pytest.fixture
def hub() -> DataLayerHub:
    return DataLayerHub()


@pytest_asyncio.fixture
async def phone(session_maker, settings, hub, fake_model):
    """Started phone services wired to the in-process hub."""
    services = build_phone_services(session_maker, settings, hub=hub, model_factory=lambda: fake_model)
    await services.start()
    await hub.drain()
    yield services
    await services.stop()


@pytest_asyncio.fixture
async def app(settings, fake_model):
    application = create_app(settings, model_factory=lambda: fake_model)
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def model_cls():
    """The FakeModel class, for tests that need a second model (e.g. one that fails)."""
    return FakeModel
