"""Shared API dependencies."""

from fastapi import HTTPException, Request, status

from otmo_copier.database import engine
from otmo_copier.engine.poller import EventPoller
from otmo_copier.repository import SqlRepository


def get_repository() -> SqlRepository:
    return SqlRepository(engine)


def get_poller(request: Request) -> EventPoller:
    """The poller built at startup; unavailable until the lifespan has run."""
    poller = getattr(request.app.state, "poller", None)
    if poller is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Poller not initialised",
        )
    return poller
