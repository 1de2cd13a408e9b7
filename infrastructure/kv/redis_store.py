"""Redis implementation of KeyValueStore.

A single flat namespace of string values. TTLs map onto Redis ``SET EX``.
Values are JSON text (not pickle) so entries stay debuggable from
``redis-cli``.

There is no locking: a read followed by a put is a plain read-modify-write
and can lose updates under concurrent writers to the same key.
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from errors import UpstreamUnavailableError
from shared.logging import get_logger

log = get_logger(__name__)


class RedisKeyValueStore:
    def __init__(self, redis_client: aioredis.Redis) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self._redis.get(key)
        except RedisError as e:
            log.error("kv_get_failed", key=key, error=str(e))
            raise UpstreamUnavailableError("storage unavailable") from e
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value

    async def put(
        self, key: str, value: str, ttl_seconds: Optional[int] = None
    ) -> None:
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
        except RedisError as e:
            log.error("kv_put_failed", key=key, error=str(e))
            raise UpstreamUnavailableError("storage unavailable") from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            log.error("kv_delete_failed", key=key, error=str(e))
            raise UpstreamUnavailableError("storage unavailable") from e

    async def get_json(self, key: str) -> Optional[Any]:
        raw = await self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            log.warning("kv_invalid_json", key=key)
            return None

    async def put_json(
        self, key: str, value: Any, ttl_seconds: Optional[int] = None
    ) -> None:
        payload = value if isinstance(value, str) else json.dumps(value)
        await self.put(key, payload, ttl_seconds)

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError:
            return False
