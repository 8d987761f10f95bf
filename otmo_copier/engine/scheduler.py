"""APScheduler integration for FastAPI.

Runs the OTMO poll cycle on a fixed interval.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from otmo_copier.engine.poller import EventPoller

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

POLL_JOB_ID = "otmo_poll"


async def run_poll_cycle(poller: EventPoller):
    """Scheduled entry point. Errors are logged so the job keeps firing."""
    try:
        await poller.run_once()
    except Exception as e:
        logger.error(f"Poll cycle error: {e}", exc_info=True)


def add_poll_job(poller: EventPoller, interval_seconds: int):
    """Add or replace the poll job."""
    if scheduler.get_job(POLL_JOB_ID):
        scheduler.remove_job(POLL_JOB_ID)

    scheduler.add_job(
        run_poll_cycle,
        trigger=IntervalTrigger(seconds=interval_seconds),
        args=[poller],
        id=POLL_JOB_ID,
        name="OTMO event poll",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=60,
    )
    logger.info(f"Scheduled OTMO poll every {interval_seconds}s")


def start_scheduler(poller: EventPoller, interval_seconds: int):
    """Register the poll job and start the scheduler."""
    add_poll_job(poller, interval_seconds)
    scheduler.start()
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")


def stop_scheduler():
    """Shut down the scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
    logger.info("Scheduler stopped")


def get_scheduler_status() -> dict:
    """Return current scheduler state for the API."""
    jobs = scheduler.get_jobs()
    return {
        "running": scheduler.running,
        "job_count": len(jobs),
        "jobs": [
            {
                "id": j.id,
                "name": j.name,
                "next_run": str(j.next_run_time) if j.next_run_time else None,
                "trigger": str(j.trigger),
            }
            for j in jobs
        ],
    }
