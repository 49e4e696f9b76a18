"""Cache-aside lookups in front of the weather fetcher."""

import logging
from typing import Awaitable, Callable, Dict, Optional, Type, TypeVar

import newrelic.agent
from pydantic import BaseModel, ValidationError

from ..config import CACHE_TTL_SECONDS
from ..openweather import FetchError
from .store import CacheStore, StoreDecodeError, StoreError

logger = logging.getLogger("weather.cache")

T = TypeVar("T", bound=BaseModel)


class CacheAside:
    """
    Return cached models when present, otherwise fetch and cache them.

    Every store or decode failure degrades to "uncached"; ``get_or_fetch``
    only ever yields a model or ``None``.
    """

    def __init__(self, store: CacheStore, default_ttl: int = CACHE_TTL_SECONDS):
        """
        Initialize the orchestrator.

        Args:
            store: Backing key-value store
            default_ttl: TTL in seconds used when a call does not pass one
        """
        self._store = store
        self._default_ttl = default_ttl
        self._hits = 0
        self._misses = 0
        self._bypasses = 0

    @newrelic.agent.function_trace()
    async def get_or_fetch(
        self,
        key: str,
        fetch_fn: Callable[[], Awaitable[Optional[T]]],
        model: Type[T],
        ttl_seconds: Optional[int] = None,
    ) -> Optional[T]:
        """
        Look ``key`` up in the store, falling back to ``fetch_fn`` on a miss.

        Args:
            key: Namespaced cache key
            fetch_fn: Zero-argument coroutine function returning a model or None
            model: Model class used to decode the cached JSON
            ttl_seconds: Expiry for a newly written entry

        Returns:
            The cached or freshly fetched model, None if the fetch produced nothing
        """
        ttl = ttl_seconds if ttl_seconds is not None else self._default_ttl

        try:
            cached = await self._store.get(key)
        except StoreDecodeError as e:
            # Undecodable bytes count as a corrupt entry: refetch and overwrite.
            logger.warning("[cache_aside] corrupt_entry", extra={"key": key, "error": str(e)})
            cached = None
        except StoreError as e:
            self._bypasses += 1
            newrelic.agent.record_custom_metric("Custom/Cache/Bypass", 1)
            logger.warning(
                "[cache_aside] store_read_failed, fetching directly",
                extra={"key": key, "error": str(e)},
            )
            return await self._fetch(key, fetch_fn)

        if cached is not None:
            try:
                value = model.model_validate_json(cached)
            except ValidationError as e:
                # Left in place; a successful refetch below overwrites it.
                logger.warning(
                    "[cache_aside] corrupt_entry",
                    extra={"key": key, "error_count": e.error_count()},
                )
            else:
                self._hits += 1
                newrelic.agent.record_custom_metric("Custom/Cache/Hits", 1)
                logger.debug("[cache_aside] hit", extra={"key": key})
                return value

        self._misses += 1
        newrelic.agent.record_custom_metric("Custom/Cache/Misses", 1)
        logger.debug("[cache_aside] miss", extra={"key": key})

        value = await self._fetch(key, fetch_fn)
        if value is None:
            return None

        try:
            await self._store.set_with_expiry(
                key, value.model_dump_json(by_alias=True), ttl
            )
        except StoreError as e:
            logger.warning(
                "[cache_aside] store_write_failed",
                extra={"key": key, "error": str(e)},
            )
        else:
            newrelic.agent.record_custom_metric("Custom/Cache/Writes", 1)
            logger.debug("[cache_aside] set", extra={"key": key, "ttl_seconds": ttl})

        return value

    async def _fetch(
        self, key: str, fetch_fn: Callable[[], Awaitable[Optional[T]]]
    ) -> Optional[T]:
        try:
            return await fetch_fn()
        except FetchError as e:
            logger.error("[cache_aside] fetch_failed", extra={"key": key, "error": str(e)})
        except Exception as e:
            newrelic.agent.notice_error()
            logger.error(
                "[cache_aside] fetch_raised",
                extra={"key": key, "error": str(e)},
                exc_info=True,
            )
        return None

    def get_stats(self) -> Dict[str, float]:
        """
        Get cache statistics.

        Returns:
            Dictionary with hits, misses, bypasses and hit rate
        """
        total = self._hits + self._misses
        hit_rate = (self._hits / total * 100) if total > 0 else 0

        return {
            "hits": float(self._hits),
            "misses": float(self._misses),
            "bypasses": float(self._bypasses),
            "hit_rate_percent": round(hit_rate, 2),
        }
