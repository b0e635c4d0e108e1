"""
Background Job Scheduler

APScheduler (AsyncIO) wrapper with a registry so that jobs can be listed,
triggered by hand, paused and resumed from the admin portal.

Jobs must be idempotent and open their own database sessions.

Usage:
    register_job("auth_purge_expired_credentials", purge_job, IntervalTrigger(hours=1))
    await start_scheduler()
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, JobExecutionEvent
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.base import BaseTrigger

logger = logging.getLogger(__name__)

JobFunc = Callable[[], Coroutine[Any, Any, Any]]

_scheduler: AsyncIOScheduler | None = None


@dataclass
class RegisteredJob:
    job_id: str
    func: JobFunc
    trigger: BaseTrigger


_job_registry: dict[str, RegisteredJob] = {}


class SchedulerConfig:
    """Configuration for the background scheduler."""

    TIMEZONE = "UTC"

    JOB_DEFAULTS = {
        "coalesce": True,  # Combine missed executions into one
        "max_instances": 1,
        "misfire_grace_time": 60 * 5,
    }


def _job_listener(event: JobExecutionEvent) -> None:
    if event.exception:
        logger.error(
            f"Job {event.job_id} failed with exception: {event.exception}",
            exc_info=event.exception,
        )
    else:
        logger.info(f"Job {event.job_id} executed at {datetime.now(UTC).isoformat()}")


def _schedule(job: RegisteredJob) -> None:
    if _scheduler is None:
        return
    _scheduler.add_job(job.func, trigger=job.trigger, id=job.job_id, replace_existing=True)
    logger.info(f"Scheduled job: {job.job_id}")


async def start_scheduler() -> AsyncIOScheduler:
    """
    Create and start the scheduler, scheduling every registered job.

    Returns:
        The running scheduler
    """
    global _scheduler

    if _scheduler is not None and _scheduler.running:
        logger.warning("Scheduler already running, returning existing instance")
        return _scheduler

    _scheduler = AsyncIOScheduler(
        timezone=SchedulerConfig.TIMEZONE,
        job_defaults=SchedulerConfig.JOB_DEFAULTS,
    )
    _scheduler.add_listener(_job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    for job in _job_registry.values():
        _schedule(job)

    _scheduler.start()
    logger.info(f"Background job scheduler started with {len(_job_registry)} jobs")
    return _scheduler


async def stop_scheduler() -> None:
    """Stop the scheduler, waiting for running jobs to finish."""
    global _scheduler

    if _scheduler is None or not _scheduler.running:
        logger.debug("Scheduler not running, nothing to stop")
        return

    _scheduler.shutdown(wait=True)
    logger.info("Background job scheduler stopped")
    _scheduler = None


def register_job(job_id: str, func: JobFunc, trigger: BaseTrigger) -> None:
    """
    Register a job. If the scheduler is already running it is scheduled at
    once, otherwise it is scheduled by ``start_scheduler``.
    """
    job = RegisteredJob(job_id=job_id, func=func, trigger=trigger)
    _job_registry[job_id] = job
    _schedule(job)


async def trigger_job_manually(job_id: str) -> dict[str, Any]:
    """
    Run a registered job immediately, outside its schedule.

    Raises:
        KeyError: If job_id is not registered
    """
    if job_id not in _job_registry:
        raise KeyError(job_id)

    executed_at = datetime.now(UTC)
    logger.info(f"Manually triggering job: {job_id}")

    try:
        result = await _job_registry[job_id].func()
    except Exception as e:
        logger.error(f"Manual execution of job {job_id} failed: {e}", exc_info=True)
        return {
            "job_id": job_id,
            "status": "error",
            "executed_at": executed_at.isoformat(),
            "error": str(e),
        }

    return {
        "job_id": job_id,
        "status": "success",
        "executed_at": executed_at.isoformat(),
        "result": result,
    }


def list_registered_jobs() -> list[dict[str, Any]]:
    """Registered jobs with their next run time and pause state."""
    jobs = []
    for job_id in _job_registry:
        info: dict[str, Any] = {"job_id": job_id, "next_run_time": None, "is_paused": True}
        scheduled = _scheduler.get_job(job_id) if _scheduler is not None else None
        if scheduled is not None and scheduled.next_run_time is not None:
            info["next_run_time"] = scheduled.next_run_time.isoformat()
            info["is_paused"] = False
        jobs.append(info)
    return jobs


def pause_job(job_id: str) -> bool:
    """Pause a scheduled job. Returns False if it is not scheduled."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Job not found for pausing: {job_id}")
        return False
    _scheduler.pause_job(job_id)
    logger.info(f"Paused job: {job_id}")
    return True


def resume_job(job_id: str) -> bool:
    """Resume a paused job. Returns False if it is not scheduled."""
    if _scheduler is None or _scheduler.get_job(job_id) is None:
        logger.warning(f"Job not found for resuming: {job_id}")
        return False
    _scheduler.resume_job(job_id)
    logger.info(f"Resumed job: {job_id}")
    return True
