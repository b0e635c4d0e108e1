"""
Authentication Repository

Persistence for OTP codes and single-use auth tokens.
"""

from datetime import datetime, timedelta

from sqlalchemy import delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AuthToken, AuthTokenType, OtpChannel, OtpCode, OtpPurpose


async def create_otp(
    db: AsyncSession,
    *,
    user_id: str,
    channel: OtpChannel,
    destination: str,
    code_hash: str,
    purpose: OtpPurpose,
    expires_at: datetime,
) -> OtpCode:
    otp = OtpCode(
        user_id=user_id,
        channel=channel,
        destination=destination,
        code_hash=code_hash,
        purpose=purpose,
        expires_at=expires_at,
        consumed=False,
        attempts=0,
    )
    db.add(otp)
    await db.flush()
    return otp


async def invalidate_otps(db: AsyncSession, user_id: str, purpose: OtpPurpose) -> None:
    """Consume every outstanding code for (user, purpose)."""
    await db.execute(
        update(OtpCode)
        .where(
            OtpCode.user_id == user_id,
            OtpCode.purpose == purpose,
            OtpCode.consumed.is_(False),
        )
        .values(consumed=True)
    )


async def get_live_otp(
    db: AsyncSession,
    user_id: str,
    purpose: OtpPurpose,
    now: datetime,
) -> OtpCode | None:
    """Newest unconsumed, unexpired code for (user, purpose)."""
    result = await db.execute(
        select(OtpCode)
        .where(
            OtpCode.user_id == user_id,
            OtpCode.purpose == purpose,
            OtpCode.consumed.is_(False),
            OtpCode.expires_at > now,
        )
        .order_by(OtpCode.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def record_failed_attempt(db: AsyncSession, otp_id: str, max_attempts: int) -> int:
    """
    Count a wrong guess in the database and burn the code on the last
    allowed attempt.

    Returns:
        Attempts made so far, including this one
    """
    result = await db.execute(
        update(OtpCode)
        .where(OtpCode.id == otp_id)
        .values(
            attempts=OtpCode.attempts + 1,
            consumed=or_(OtpCode.consumed, OtpCode.attempts + 1 >= max_attempts),
        )
        .returning(OtpCode.attempts)
    )
    return result.scalar_one()


async def consume_otp(db: AsyncSession, otp_id: str) -> bool:
    """Mark a code consumed unless a concurrent request got there first."""
    result = await db.execute(
        update(OtpCode)
        .where(OtpCode.id == otp_id, OtpCode.consumed.is_(False))
        .values(consumed=True)
        .returning(OtpCode.id)
    )
    return result.scalar_one_or_none() is not None


async def create_token(
    db: AsyncSession,
    *,
    user_id: str,
    token_hash: str,
    token_type: AuthTokenType,
    expires_at: datetime,
    context: dict | None = None,
) -> AuthToken:
    token = AuthToken(
        user_id=user_id,
        token_hash=token_hash,
        token_type=token_type,
        expires_at=expires_at,
        context=context,
    )
    db.add(token)
    await db.flush()
    return token


async def invalidate_tokens(
    db: AsyncSession,
    user_id: str,
    token_type: AuthTokenType,
    now: datetime,
) -> None:
    """Mark every unused token of this type for the user as used."""
    await db.execute(
        update(AuthToken)
        .where(
            AuthToken.user_id == user_id,
            AuthToken.token_type == token_type,
            AuthToken.used_at.is_(None),
        )
        .values(used_at=now)
    )


async def get_token_by_hash(
    db: AsyncSession,
    token_hash: str,
    token_type: AuthTokenType,
) -> AuthToken | None:
    result = await db.execute(
        select(AuthToken).where(
            AuthToken.token_hash == token_hash,
            AuthToken.token_type == token_type,
        )
    )
    return result.scalar_one_or_none()


async def claim_token(db: AsyncSession, token_id: str, now: datetime) -> bool:
    """
    Burn an unused token in a single conditional UPDATE.

    Returns:
        False when another request already used it
    """
    result = await db.execute(
        update(AuthToken)
        .where(AuthToken.id == token_id, AuthToken.used_at.is_(None))
        .values(used_at=now)
        .returning(AuthToken.id)
    )
    return result.scalar_one_or_none() is not None


async def purge_expired(db: AsyncSession, now: datetime, retention: timedelta) -> tuple[int, int]:
    """
    Delete one-time credentials that expired or were used before
    ``now - retention``.

    Returns:
        (otp codes deleted, auth tokens deleted)
    """
    cutoff = now - retention
    otp_result = await db.execute(
        delete(OtpCode).where(
            or_(OtpCode.expires_at < cutoff, (OtpCode.consumed.is_(True)) & (OtpCode.created_at < cutoff))
        )
    )
    token_result = await db.execute(
        delete(AuthToken).where(or_(AuthToken.expires_at < cutoff, AuthToken.used_at < cutoff))
    )
    return otp_result.rowcount or 0, token_result.rowcount or 0
