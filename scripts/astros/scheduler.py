"""APScheduler interval loop for roster syncs."""

from __future__ import annotations

import logging
from datetime import datetime

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MAX_INSTANCES
from apscheduler.schedulers.blocking import BlockingScheduler

from scripts.astros.config import AstrosConfig
from scripts.astros.db import Database
from scripts.astros.errors import FetchError

logger = logging.getLogger("astros.scheduler")

JOB_ID = "roster_sync"


def _run_sync(config: AstrosConfig, db: Database) -> None:
    """One scheduled run. Failures wait for the next interval, no retries."""
    from scripts.astros.cli import build_sync

    try:
        build_sync(config, db).run_with_tracking(db)
    except FetchError as exc:
        logger.error("Feed unavailable, skipping this run: %s", exc)
    except Exception as exc:
        logger.error("Roster sync failed: %s", exc, exc_info=True)


def _on_job_event(event) -> None:
    if event.code == EVENT_JOB_MAX_INSTANCES:
        logger.warning("Previous %s run still in progress, skipping", event.job_id)
    else:
        logger.error("Job %s raised an exception: %s", event.job_id, event.exception)


def build_scheduler(config: AstrosConfig, db: Database) -> BlockingScheduler:
    scheduler = BlockingScheduler()
    scheduler.add_listener(_on_job_event, EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES)
    scheduler.add_job(
        _run_sync,
        "interval",
        minutes=config.scheduler.interval_min,
        args=[config, db],
        id=JOB_ID,
        max_instances=1,
        coalesce=True,
        misfire_grace_time=config.scheduler.misfire_grace_time,
        next_run_time=datetime.now(),
    )
    return scheduler


def start_scheduler(config: AstrosConfig, db: Database) -> None:
    """Block, running a sync now and then every interval_min minutes."""
    scheduler = build_scheduler(config, db)
    logger.info(
        "Starting scheduler, syncing every %d minutes", config.scheduler.interval_min
    )
    scheduler.start()
