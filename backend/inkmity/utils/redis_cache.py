import logging
import os
import random
from datetime import date
from typing import Any, Optional

import redis

from ..core.config import settings
from .json_utils import dumps, loads

_redis_client: Optional[redis.Redis] = None


class _NullRedis:
    """No-op Redis client used when Redis is disabled or unavailable.

    Methods mirror the minimal surface used in this codebase so callers can
    proceed without needing try/except around get_redis_client().
    """

    def get(self, key: str):
        return None

    def setex(self, key: str, expire: int, value: str):
        return None

    def scan_iter(self, pattern: str):
        return iter(())

    def delete(self, key: str):
        return 0

    def close(self):
        return None


def get_redis_client() -> redis.Redis:
    global _redis_client
    if _redis_client is None:
        url = (settings.REDIS_URL or "").strip()
        # Allow disabling via empty/none/disabled/false
        if not url or url.lower() in {"none", "disabled", "false", "0"}:
            _redis_client = _NullRedis()  # type: ignore[assignment]
            return _redis_client
        # Short socket timeouts so a slow Redis never stalls slot lookups
        conn_to = float(os.getenv("REDIS_CONNECT_TIMEOUT", "0.5"))
        read_to = float(os.getenv("REDIS_SOCKET_TIMEOUT", "0.5"))
        try:
            _redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=conn_to,
                socket_timeout=read_to,
            )
        except (redis.exceptions.RedisError, ValueError) as exc:
            logging.warning("Redis client creation failed, caching disabled: %s", exc)
            _redis_client = _NullRedis()  # type: ignore[assignment]
    return _redis_client


SLOTS_KEY_PREFIX = "slots"


def _apply_jitter(expire: int) -> int:
    """Return a TTL with a small random jitter to prevent cache stampedes."""
    return expire + random.randint(0, max(1, expire // 10))


def _slots_key(artist_id: str, day: date, duration_minutes: Optional[int]) -> str:
    dur = "" if duration_minutes is None else str(duration_minutes)
    return f"{SLOTS_KEY_PREFIX}:{artist_id}:{day.isoformat()}:{dur}"


def get_cached_slots(
    artist_id: str, day: date, duration_minutes: Optional[int] = None
) -> list[dict[str, Any]] | None:
    client = get_redis_client()
    key = _slots_key(artist_id, day, duration_minutes)
    try:
        data = client.get(key)
    except redis.exceptions.RedisError as exc:
        logging.warning("Redis unavailable: %s", exc)
        return None
    if not data:
        return None
    try:
        return loads(data)
    except ValueError as exc:
        # Corrupted entries are treated as a miss
        logging.warning("Could not decode slot cache for key %s: %s", key, exc)
        return None


def cache_slots(
    data: list[dict[str, Any]],
    artist_id: str,
    day: date,
    duration_minutes: Optional[int] = None,
    expire: Optional[int] = None,
) -> None:
    client = get_redis_client()
    key = _slots_key(artist_id, day, duration_minutes)
    ttl = _apply_jitter(expire or settings.SLOT_CACHE_TTL_SECONDS)
    try:
        client.setex(key, ttl, dumps(data))
    except redis.exceptions.RedisError as exc:
        logging.warning("Could not cache slots: %s", exc)


def invalidate_slot_cache(artist_id: str, day: Optional[date] = None) -> None:
    """Drop cached slots for an artist, for one day or for every day."""
    client = get_redis_client()
    day_part = day.isoformat() if day else "*"
    try:
        for key in client.scan_iter(f"{SLOTS_KEY_PREFIX}:{artist_id}:{day_part}:*"):
            client.delete(key)
    except redis.exceptions.RedisError as exc:
        logging.warning("Could not clear slot cache: %s", exc)


def close_redis_client() -> None:
    """Close the global Redis client if it exists."""
    global _redis_client
    if _redis_client is not None:
        try:
            _redis_client.close()
        except redis.exceptions.RedisError as exc:  # pragma: no cover - best effort
            logging.warning("Error closing Redis client: %s", exc)
        finally:
            _redis_client = None
