"""Redis-backed key-value store used by the weather cache."""

import logging
from typing import Iterable, Optional, Set

from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger("weather.cache.store")


class StoreError(Exception):
    """Base class for cache store failures."""


class StoreDisconnectedError(StoreError):
    """The store was unreachable at startup; no operation is attempted."""


class StoreOperationError(StoreError):
    """A command reached Redis (or tried to) and failed."""


class StoreDecodeError(StoreOperationError):
    """A stored value could not be decoded as UTF-8."""


class CacheStore:
    """
    Thin async wrapper over a Redis client.

    A store built without a client is *disconnected*: every operation raises
    ``StoreDisconnectedError`` straight away instead of waiting on a socket.
    """

    def __init__(self, client: Optional[Redis] = None):
        self._client = client

    @classmethod
    async def connect(
        cls, host: str, port: int = 6379, connect_timeout: float = 10.0
    ) -> "CacheStore":
        """
        Build a client and ping it once.

        Args:
            host: Redis host
            port: Redis port
            connect_timeout: Seconds allowed for the socket connect

        Returns:
            A connected store, or a disconnected one if the ping failed
        """
        client = Redis(
            host=host,
            port=port,
            socket_connect_timeout=connect_timeout,
            socket_keepalive=True,
            decode_responses=True,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error(
                "[cache_store] unavailable, continuing without cache",
                extra={"host": host, "port": port, "error": str(e)},
            )
            await client.aclose()
            return cls(None)

        logger.info("[cache_store] connected", extra={"host": host, "port": port})
        return cls(client)

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _require_client(self) -> Redis:
        if self._client is None:
            raise StoreDisconnectedError("cache store is not connected")
        return self._client

    async def get(self, key: str) -> Optional[str]:
        client = self._require_client()
        try:
            return await client.get(key)
        except RedisError as e:
            raise StoreOperationError(f"GET {key} failed: {e}") from e
        except UnicodeDecodeError as e:
            raise StoreDecodeError(f"GET {key} returned undecodable bytes: {e}") from e

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        client = self._require_client()
        try:
            await client.setex(key, ttl_seconds, value)
        except RedisError as e:
            raise StoreOperationError(f"SETEX {key} failed: {e}") from e

    async def delete(self, keys: Iterable[str]) -> int:
        """Delete ``keys`` and return how many of them existed."""
        client = self._require_client()
        keys = sorted(set(keys))
        if not keys:
            return 0
        try:
            return int(await client.delete(*keys))
        except RedisError as e:
            raise StoreOperationError(f"DEL failed: {e}") from e

    async def keys_matching(self, pattern: str) -> Set[str]:
        client = self._require_client()
        try:
            return set(await client.keys(pattern))
        except RedisError as e:
            raise StoreOperationError(f"KEYS {pattern} failed: {e}") from e

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
