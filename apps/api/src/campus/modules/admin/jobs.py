"""
Admin Background Jobs

Downgrades schools whose paid subscription has lapsed. Runs hourly.
"""

import logging
from datetime import UTC, datetime
from typing import Any

from apscheduler.triggers.interval import IntervalTrigger

from campus.core.database import async_session_maker
from campus.core.scheduler import register_job
from campus.modules.audit.repository import log_action
from campus.modules.schools.models import SubscriptionPlan
from campus.modules.schools.repository import SchoolRepository

logger = logging.getLogger(__name__)

JOB_ID_EXPIRE_SUBSCRIPTIONS = "admin_expire_subscriptions"


async def expire_subscriptions() -> dict[str, Any]:
    """
    Move every school with an expired paid plan back to the free plan.

    Returns:
        Dict with execution time and the codes of downgraded schools
    """
    executed_at = datetime.now(UTC)

    async with async_session_maker() as db:
        schools = await SchoolRepository.list_expired_subscriptions(db, executed_at)
        downgraded = []
        for school in schools:
            previous = school.subscription_plan.value
            await SchoolRepository.update_subscription(db, school, SubscriptionPlan.FREE, None)
            await log_action(
                db,
                action="subscription_expired",
                entity_type="school",
                entity_id=school.id,
                old_values={"plan": previous},
                new_values={"plan": SubscriptionPlan.FREE.value},
            )
            downgraded.append(school.code)
        await db.commit()

    if downgraded:
        logger.info(f"Downgraded {len(downgraded)} expired subscriptions: {downgraded}")
    return {
        "executed_at": executed_at.isoformat(),
        "schools_downgraded": len(downgraded),
        "school_codes": downgraded,
    }


def register_admin_jobs() -> None:
    """Register admin jobs with the scheduler (hourly)."""
    register_job(
        job_id=JOB_ID_EXPIRE_SUBSCRIPTIONS,
        func=expire_subscriptions,
        trigger=IntervalTrigger(hours=1),
    )
    logger.info(f"Registered job: {JOB_ID_EXPIRE_SUBSCRIPTIONS} (interval: 1 hour)")
