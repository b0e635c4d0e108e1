"""
Audit Log Repository
"""

import logging

from fastapi import Request
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from campus.modules.audit.models import SystemLog

logger = logging.getLogger(__name__)


def request_origin(request: Request | None) -> dict[str, str | None]:
    """IP address and user agent of a request, for log entries."""
    if request is None:
        return {"ip_address": None, "user_agent": None}
    forwarded = request.headers.get("x-forwarded-for")
    ip = forwarded.split(",")[0].strip() if forwarded else (request.client.host if request.client else None)
    return {"ip_address": ip, "user_agent": request.headers.get("user-agent")}


async def log_action(
    db: AsyncSession,
    *,
    action: str,
    user_id: str | None = None,
    entity_type: str | None = None,
    entity_id: str | None = None,
    old_values: dict | None = None,
    new_values: dict | None = None,
    success: bool = True,
    details: str | None = None,
    request: Request | None = None,
) -> SystemLog:
    """Append an entry to the system log (flushed, committed with the request)."""
    entry = SystemLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        old_values=old_values,
        new_values=new_values,
        success=success,
        details=details,
        **request_origin(request),
    )
    db.add(entry)
    await db.flush()

    logger.debug(f"Audit: {action} by {user_id} on {entity_type}:{entity_id} success={success}")
    return entry


async def list_logs(
    db: AsyncSession,
    *,
    action: str | None = None,
    entity_type: str | None = None,
    user_id: str | None = None,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[SystemLog], int]:
    """Newest-first log entries with optional filters."""
    query = select(SystemLog)
    if action:
        query = query.where(SystemLog.action == action)
    if entity_type:
        query = query.where(SystemLog.entity_type == entity_type)
    if user_id:
        query = query.where(SystemLog.user_id == user_id)

    total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar_one()
    result = await db.execute(query.order_by(SystemLog.created_at.desc()).offset(offset).limit(limit))
    return list(result.scalars().all()), total


async def recent(db: AsyncSession, limit: int = 10) -> list[SystemLog]:
    result = await db.execute(select(SystemLog).order_by(SystemLog.created_at.desc()).limit(limit))
    return list(result.scalars().all())
