"""
Phone service: wellness history, preferences, assistant and the phone end of
the watch data layer.

Run locally:
    uvicorn wellsync.main:app --reload --port 8000
"""
import logging
import sys
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from wellsync.api.v1 import chat, datalayer, insights, preferences, profile, wellness
from wellsync.config import Settings, settings
from wellsync.db.session import init_db, make_engine, make_session_maker
from wellsync.services.gemini_common import make_model
from wellsync.services.phone import build_phone_services

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logging.getLogger("wellsync").setLevel(logging.DEBUG)
logger = logging.getLogger(__name__)


def create_app(config: Settings | None = None, model_factory: Callable[[], object] = make_model) -> FastAPI:
    config = config or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.validate_pairing_config()
        engine = make_engine(config.database_url, echo=config.debug)
        await init_db(engine)
        services = build_phone_services(make_session_maker(engine), config, model_factory=model_factory)
        await services.start()
        app.state.services = services
        logger.info("Phone service started (node %s)", config.phone_node_id)
        yield
        await services.stop()
        app.state.services = None
        await engine.dispose()
        logger.info("Phone service stopped")

    app = FastAPI(
        title="wellsync phone service",
        description="Wellness history, watch sync and AI assistant",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.services = None

    for r in (wellness.router, preferences.router, profile.router, chat.router, insights.router, datalayer.router):
        app.include_router(r, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
