"""
Core package: settings, database and Redis lifecycles, and credential helpers.

Access control (``auth``, ``permissions``, ``tenancy``) imports the ORM models
and is therefore imported from its own modules, not re-exported here.
"""

from campus.core.config import get_settings, settings
from campus.core.database import Base, close_db, get_db, init_db
from campus.core.redis import close_redis, init_redis, is_token_id_revoked, revoke_token_id
from campus.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_otp_code,
    generate_secure_token,
    hash_password,
    hash_token,
    verify_password,
)

__all__ = [
    "settings",
    "get_settings",
    "Base",
    "get_db",
    "init_db",
    "close_db",
    "init_redis",
    "close_redis",
    "revoke_token_id",
    "is_token_id_revoked",
    "hash_password",
    "verify_password",
    "hash_token",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "generate_otp_code",
    "generate_secure_token",
]
