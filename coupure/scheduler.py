# coupure/scheduler.py
import logging
import os
from typing import Iterable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from coupure.store import ReportStore

log = logging.getLogger(__name__)

scheduler: Optional[AsyncIOScheduler] = None


async def refresh_all(stores: Iterable[ReportStore]) -> dict:
    """Une passe de réconciliation par store ; {kind: True/False}."""
    out = {}
    for store in stores:
        out[store.kind.name] = await store.refresh()
    return out


def start_scheduler(stores: Iterable[ReportStore], interval_min: int) -> AsyncIOScheduler:
    global scheduler
    if scheduler and scheduler.running:
        return scheduler

    stores = list(stores)

    async def job():
        try:
            res = await refresh_all(stores)
            log.info("[scheduler] refresh -> %s", res)
        except Exception as e:
            log.exception("[scheduler] refresh error: %s", e)

    # coalesce + max_instances : pas de ré-entrance
    scheduler = AsyncIOScheduler(
        job_defaults={"coalesce": True, "max_instances": 1},
        timezone=os.getenv("TZ", "UTC"),
    )
    scheduler.add_job(job, trigger=IntervalTrigger(minutes=interval_min),
                      id="coupure_refresh", replace_existing=True)
    scheduler.start()
    log.info("[scheduler] started (every %s min)", interval_min)
    return scheduler


def stop_scheduler() -> None:
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        log.info("[scheduler] stopped")
    scheduler = None
