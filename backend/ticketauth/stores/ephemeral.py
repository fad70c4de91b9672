"""Expiring key-value storage for OTP codes and session records."""

from __future__ import annotations

import json
from typing import Any, Optional, Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..exceptions import StoreUnavailableError

logger = structlog.get_logger(__name__)

# Deletes KEYS[1] only while it still holds ARGV[1]
_DELETE_IF_EQUALS = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


def _key_kind(key: str) -> str:
    # Keys embed session ids and emails; only the prefix is safe to log
    return key.split(":", 1)[0]


class EphemeralStore(Protocol):
    """Key-value store whose writes always carry a TTL"""

    async def get(self, key: str) -> Optional[Any]: ...

    async def set(self, key: str, value: Any, ttl: int) -> None: ...

    async def delete(self, key: str) -> None: ...

    async def delete_if_equals(self, key: str, value: Any) -> bool: ...

    async def ping(self) -> bool: ...


class RedisEphemeralStore:
    """
    Redis implementation of EphemeralStore.
    Values are JSON-encoded; the TTL is set in the same SET command.
    """

    def __init__(self, redis_client: Redis) -> None:
        self._redis = redis_client

    @staticmethod
    def _encode(value: Any) -> str:
        return json.dumps(value, separators=(",", ":"))

    async def get(self, key: str) -> Optional[Any]:
        try:
            val = await self._redis.get(key)
        except RedisError as e:
            logger.error("redis_get_failed", key_kind=_key_kind(key), error=str(e))
            raise StoreUnavailableError() from e

        if val is None:
            return None
        try:
            return json.loads(val)
        except ValueError:
            logger.warning("redis_value_not_json", key_kind=_key_kind(key))
            return None

    async def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            await self._redis.set(key, self._encode(value), ex=ttl)
        except RedisError as e:
            logger.error("redis_set_failed", key_kind=_key_kind(key), error=str(e))
            raise StoreUnavailableError() from e

    async def delete(self, key: str) -> None:
        try:
            await self._redis.delete(key)
        except RedisError as e:
            logger.error("redis_delete_failed", key_kind=_key_kind(key), error=str(e))
            raise StoreUnavailableError() from e

    async def delete_if_equals(self, key: str, value: Any) -> bool:
        try:
            deleted = await self._redis.eval(_DELETE_IF_EQUALS, 1, key, self._encode(value))
        except RedisError as e:
            logger.error("redis_delete_failed", key_kind=_key_kind(key), error=str(e))
            raise StoreUnavailableError() from e
        return bool(deleted)

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except RedisError as e:
            logger.error("redis_ping_failed", error=str(e))
            return False
