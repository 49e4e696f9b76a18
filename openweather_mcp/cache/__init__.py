"""Cache modules for the weather tools server."""

from .cache_aside import CacheAside
from .store import (
    CacheStore,
    StoreDecodeError,
    StoreDisconnectedError,
    StoreError,
    StoreOperationError,
)

__all__ = [
    "CacheAside",
    "CacheStore",
    "StoreDecodeError",
    "StoreDisconnectedError",
    "StoreError",
    "StoreOperationError",
]
