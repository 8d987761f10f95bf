"""Processed-event history API."""

from fastapi import APIRouter, Depends, HTTPException

from otmo_copier.api.deps import get_repository
from otmo_copier.repository import SqlRepository
from otmo_copier.schemas.status import ProcessedEventRead

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("", response_model=list[ProcessedEventRead])
def list_events(
    status: str | None = None,
    source_trade_id: str | None = None,
    limit: int = 50,
    offset: int = 0,
    repository: SqlRepository = Depends(get_repository),
):
    return repository.list_processed_events(
        status=status.upper() if status else None,
        source_trade_id=source_trade_id,
        limit=limit,
        offset=offset,
    )


@router.get("/{idempotency_key}", response_model=ProcessedEventRead)
def get_event(idempotency_key: str, repository: SqlRepository = Depends(get_repository)):
    record = repository.get_processed_event(idempotency_key)
    if not record:
        raise HTTPException(status_code=404, detail="Event not found")
    return record
