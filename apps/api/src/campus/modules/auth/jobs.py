"""
Authentication Background Jobs

Removes one-time credentials (OTP codes, reset and magic-link tokens) once
they have expired or been used and a retention day has passed. Runs hourly
and is safe to run repeatedly.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from campus.core.database import async_session_maker
from campus.core.scheduler import register_job
from campus.modules.auth import repository

logger = logging.getLogger(__name__)

JOB_ID_PURGE_CREDENTIALS = "auth_purge_expired_credentials"

RETENTION = timedelta(days=1)


async def purge_expired_credentials() -> dict[str, Any]:
    """
    Delete stale OTP codes and auth tokens.

    Returns:
        Dict with execution time and deletion counts
    """
    executed_at = datetime.now(UTC)

    async with async_session_maker() as db:
        otp_count, token_count = await repository.purge_expired(db, executed_at, RETENTION)
        await db.commit()

    logger.info(f"Purged {otp_count} OTP codes and {token_count} auth tokens")
    return {
        "executed_at": executed_at.isoformat(),
        "otp_codes_deleted": otp_count,
        "auth_tokens_deleted": token_count,
    }


def register_auth_jobs() -> None:
    """Register authentication jobs with the scheduler (hourly)."""
    register_job(
        job_id=JOB_ID_PURGE_CREDENTIALS,
        func=purge_expired_credentials,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_PURGE_CREDENTIALS} (interval: 1 hour)")
