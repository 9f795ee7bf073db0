from __future__ import annotations

import os
from functools import lru_cache

from redis import Redis
from redis.exceptions import RedisError

from schoolms.infra.logging import get_logger

REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379/0")
REVOKED_REFRESH_PREFIX = "schoolms:revoked-refresh:"

logger = get_logger(__name__)


@lru_cache(maxsize=1)
def get_redis() -> Redis:
    return Redis.from_url(REDIS_URL, decode_responses=True)


def check_redis_ready() -> bool:
    try:
        return bool(get_redis().ping())
    except Exception:
        return False


def revoke_refresh_token(token_id: str, ttl_seconds: int) -> None:
    """Remember a signed-out refresh token until it would have expired anyway."""
    if ttl_seconds <= 0:
        return
    try:
        get_redis().set(f"{REVOKED_REFRESH_PREFIX}{token_id}", "1", ex=ttl_seconds)
    except RedisError:
        logger.warning("redis.revoke_failed", token_id=token_id)


def is_refresh_token_revoked(token_id: str) -> bool:
    try:
        return bool(get_redis().exists(f"{REVOKED_REFRESH_PREFIX}{token_id}"))
    except RedisError:
        logger.warning("redis.revocation_lookup_failed", token_id=token_id)
        return False
