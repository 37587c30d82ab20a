"""
scheduler.py

Responsibility: Sets up the APScheduler AsyncIOScheduler used by --interval
mode and registers the recurring DDNS run.
Does NOT: contain DNS business logic; each tick delegates to updater.run_once.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import Settings
from updater import run_once

logger = logging.getLogger(__name__)

# Job ID used to identify the DDNS run job in APScheduler
JOB_ID = "ddns_run"


async def _ddns_run_job(settings: Settings, http_client: httpx.AsyncClient) -> None:
    """
    APScheduler job: one full run with fresh caches.

    Failures are already logged per hostname by the driver, so the job only
    notes the aggregate result.
    """
    report = await run_once(settings, http_client)
    if not report.ok:
        logger.warning("Run finished with %d failed subdomain(s).", len(report.failures))


def create_scheduler(
    settings: Settings,
    http_client: httpx.AsyncClient,
    interval_seconds: int = 300,
) -> AsyncIOScheduler:
    """
    Creates and returns a configured AsyncIOScheduler with the DDNS run job.

    The job runs immediately on start (next_run_time=now) and then at the
    configured interval.

    Args:
        settings: Validated settings shared by every run.
        http_client: The shared httpx.AsyncClient to pass into the job.
        interval_seconds: Seconds between runs (default 300).

    Returns:
        A configured but not yet started AsyncIOScheduler.
    """
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _ddns_run_job,
        trigger="interval",
        seconds=interval_seconds,
        id=JOB_ID,
        kwargs={"settings": settings, "http_client": http_client},
        next_run_time=datetime.now(timezone.utc),
        max_instances=1,  # Prevent overlapping runs if one takes too long
    )
    logger.info("DDNS run scheduled, interval: %ds.", interval_seconds)
    return scheduler
