"""System API: health check, scheduler status, copy status, manual poll."""

from fastapi import APIRouter, Depends, HTTPException

from otmo_copier.api.deps import get_poller, get_repository
from otmo_copier.config import settings
from otmo_copier.engine.poller import EventPoller
from otmo_copier.repository import SqlRepository
from otmo_copier.schemas.status import StatusSummary

router = APIRouter(prefix="/api/system", tags=["system"])


@router.get("/health")
def health_check():
    return {"status": "ok"}


@router.get("/scheduler")
def scheduler_status():
    """Current scheduler state with job details."""
    from otmo_copier.engine.scheduler import get_scheduler_status
    return get_scheduler_status()


@router.get("/status", response_model=StatusSummary)
def copy_status(repository: SqlRepository = Depends(get_repository)):
    """Processed-event counts, mapping count and feed cursor."""
    from otmo_copier.services.event_source import JsonlEventSource

    by_status = repository.count_by_status()
    source = JsonlEventSource(settings.event_source_path)
    return StatusSummary(
        processed_total=sum(by_status.values()),
        by_status=by_status,
        mapping_count=repository.count_trade_mappings(),
        cursor=repository.get_cursor(source.name),
        dry_run=settings.dry_run,
        default_venue=settings.default_venue,
    )


@router.post("/poll")
async def trigger_poll(poller: EventPoller = Depends(get_poller)):
    """Manually run one poll cycle."""
    try:
        summary = await poller.run_once()
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "ok", "summary": summary.as_dict()}
