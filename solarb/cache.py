"""Redis-backed JSON cache, mainly for DEX API responses."""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Sequence

import redis.asyncio
from redis.exceptions import RedisError

log = logging.getLogger(__name__)


class CacheError(Exception):
    """Raised when the cache cannot be reached or holds unreadable data."""


class Cache:
    """A shared Redis cache storing JSON values under colon-separated keys."""

    def __init__(self, client: Any, default_ttl_secs: int) -> None:
        self._client = client
        self.default_ttl_secs = default_ttl_secs

    @classmethod
    async def connect(cls, redis_url: str, default_ttl_secs: int) -> "Cache":
        """Open a Redis client for the URL and check that the server answers."""
        log.info("Initializing Redis connection for URL: %s", redis_url)
        try:
            client = redis.asyncio.from_url(redis_url, decode_responses=True)
            await client.ping()
        except (RedisError, ValueError, OSError) as exc:
            log.error("Failed to create Redis connection: %s", exc)
            raise CacheError(f"Failed to create Redis connection: {exc}") from exc
        log.info("Redis connection initialized. Default TTL: %ss", default_ttl_secs)
        return cls(client, default_ttl_secs)

    @staticmethod
    def generate_key(prefix: str, params: Sequence[str]) -> str:
        return ":".join([prefix, *params])

    async def get_json(self, key_prefix: str, key_params: Sequence[str]) -> Optional[Any]:
        """Return the decoded value for the key, or None on a miss."""
        key = self.generate_key(key_prefix, key_params)
        log.debug("Attempting to GET cache for key: %s", key)
        try:
            raw = await self._client.get(key)
        except RedisError as exc:
            log.error("Redis GET error for key %s: %s", key, exc)
            raise CacheError(f"Redis GET error for key {key}: {exc}") from exc
        if raw is None:
            log.debug("Cache MISS for key: %s", key)
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        log.debug("Cache HIT for key: %s. Deserializing...", key)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            log.warning("Failed to deserialize cached JSON for key %s: %s. Data: '%s'", key, exc, raw)
            raise CacheError(f"Cache deserialization error for key {key}: {exc}") from exc

    async def set_ex(
        self,
        prefix: str,
        params: Sequence[str],
        value: Any,
        ttl_seconds: Optional[int] = None,
    ) -> None:
        """Store the value as JSON with an expiry; the default TTL applies when none is given."""
        key = self.generate_key(prefix, params)
        payload = json.dumps(value, separators=(",", ":"))
        ttl = self.default_ttl_secs if ttl_seconds is None else ttl_seconds
        try:
            await self._client.setex(key, ttl, payload)
        except RedisError as exc:
            log.warning("Failed to SETEX key '%s' in Redis: %s", key, exc)
            raise CacheError(f"Redis SETEX error for key {key}: {exc}") from exc
        log.debug("Cache SETEX success for key: %s with TTL: %ss", key, ttl)

    async def delete(self, key_prefix: str, key_params: Sequence[str]) -> bool:
        """Delete the key; True when something was removed."""
        key = self.generate_key(key_prefix, key_params)
        log.debug("Attempting to DEL cache for key: %s", key)
        try:
            count = await self._client.delete(key)
        except RedisError as exc:
            log.error("Redis DEL error for key %s: %s", key, exc)
            raise CacheError(f"Redis DEL error: {exc}") from exc
        return count > 0