"""
Token Revocation using Redis.

Logging out blacklists the presented JWT until it would have expired anyway.
"""

import logging

from marketplace_backend.app.core.config import settings

logger = logging.getLogger(__name__)

# Redis key prefix for blacklisted tokens
TOKEN_BLACKLIST_PREFIX = "blacklist:token:"


async def revoke_token(redis, token: str, user_id: int) -> bool:
    """
    Revoke a JWT by adding it to the blacklist.

    Args:
        redis: Redis client
        token: The JWT token string to revoke
        user_id: User ID who owns the token (stored for auditing)

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        ttl_seconds = settings.access_token_expire_minutes * 60
        await redis.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", ttl_seconds, str(user_id))
        return True
    except Exception:
        logger.exception("Error revoking token for user %s", user_id)
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """
    Check if a token has been revoked.

    Fails open when Redis is unreachable.
    """
    try:
        exists = await redis.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}")
        return exists > 0
    except Exception:
        logger.exception("Error checking token revocation")
        return False
