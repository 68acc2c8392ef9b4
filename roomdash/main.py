from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from roomdash import __version__
from roomdash.api.router import router
from roomdash.core import Settings, settings as default_settings
from roomdash.runtime.broadcaster import SnapshotBroadcaster
from roomdash.runtime.hub import ConnectionHub
from roomdash.runtime.presence import MembershipLedger
from roomdash.services.lifecycle import ConnectionLifecycle


logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the dashboard app with its own ledger, hub and broadcaster.

    The ledger is written only by the lifecycle handler; the broadcaster
    reads it on every tick.
    """
    settings = settings or default_settings

    ledger = MembershipLedger()
    hub = ConnectionHub()
    lifecycle = ConnectionLifecycle(ledger, hub)
    broadcaster = SnapshotBroadcaster(
        ledger,
        hub,
        interval_seconds=settings.BROADCAST_INTERVAL_SECONDS,
        top_limit=settings.TOP_ROOMS_LIMIT,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        broadcaster.start()
        logger.info("Dashboard broadcaster started (every %.2fs)", settings.BROADCAST_INTERVAL_SECONDS)
        try:
            yield
        finally:
            await broadcaster.stop()
            logger.info("Dashboard broadcaster stopped")

    app = FastAPI(title="roomdash", version=__version__, lifespan=lifespan)
    app.state.settings = settings
    app.state.ledger = ledger
    app.state.hub = hub
    app.state.lifecycle = lifecycle
    app.state.broadcaster = broadcaster

    app.include_router(router)
    Path(settings.STATIC_DIR).mkdir(parents=True, exist_ok=True)
    app.mount(settings.STATIC_BASE_URL, StaticFiles(directory=settings.STATIC_DIR), name="static")
    return app


app = create_app()


def run() -> None:
    configure_logging(default_settings.LOG_LEVEL)
    logger.info("Server running on port %d", default_settings.PORT)
    logger.info("Dashboard available at http://localhost:%d", default_settings.PORT)
    uvicorn.run(app, host=default_settings.HOST, port=default_settings.PORT, log_level=default_settings.LOG_LEVEL.lower())
