from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from incoming_sync import __version__
from incoming_sync.core.config import get_settings
from incoming_sync.core.logging import configure_logging, request_id_middleware
from incoming_sync.db.init import create_tables, sanitize_db_url
from incoming_sync.db.base import get_database_url
from incoming_sync.sync.router import router as incoming_router
from incoming_sync.sync.service import build_coordinator, set_coordinator

logger = structlog.get_logger(__name__)

settings = get_settings()
configure_logging(settings.ENV)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, restore state and attach the coordinator to new blocks."""
    logger.info(
        "app.starting",
        env=settings.ENV,
        database=sanitize_db_url(get_database_url()),
        chain_id=settings.CHAIN_ID,
    )

    await create_tables()
    coordinator = build_coordinator(settings)
    await coordinator.restore()
    set_coordinator(coordinator)

    if settings.AUTO_START:
        coordinator.start()
    else:
        logger.info("app.coordinator_not_started", hint="POST /incoming/sync to sync manually")

    logger.info("app.started")

    yield

    logger.info("app.stopping")
    await coordinator.shutdown()
    set_coordinator(None)
    logger.info("app.stopped")


app = FastAPI(title="Incoming Transaction Sync", version=__version__, lifespan=lifespan)
app.middleware("http")(request_id_middleware)
app.include_router(incoming_router)


@app.get("/")
def health_check():
    return {"status": "ok"}


@app.get("/healthz")
def healthz():
    return {"status": "healthy", "env": settings.ENV}
