"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from otmo_copier.config import settings
from otmo_copier.database import create_db_and_tables, engine
from otmo_copier.utils.logging import setup_logging
from otmo_copier.api import events, mappings, system

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    setup_logging()
    create_db_and_tables()

    from otmo_copier.engine.factory import build_poller
    from otmo_copier.engine.scheduler import start_scheduler, stop_scheduler

    app.state.poller = build_poller(settings, engine)
    logger.info(
        f"Copier starting: venues={settings.venues} default={settings.default_venue} "
        f"dry_run={settings.dry_run} feed={settings.event_source_path}"
    )
    start_scheduler(app.state.poller, settings.poll_interval_seconds)

    yield

    stop_scheduler()


app = FastAPI(
    title="OTMO Trade Copier",
    description="Copies OTMO trade events onto execution venues",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount routers
app.include_router(system.router)
app.include_router(events.router)
app.include_router(mappings.router)
