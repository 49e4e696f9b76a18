"""Shared fixtures: an in-memory Redis stand-in and sample OpenWeather payloads."""

import fnmatch
from typing import Dict, Optional, Tuple

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from openweather_mcp.cache import CacheStore


class FakeRedis:
    """Subset of the ``redis.asyncio.Redis`` API with a manual clock."""

    def __init__(self):
        self.now = 0.0
        self.data: Dict[str, Tuple[str, Optional[float]]] = {}
        self.calls = []
        self.closed = False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _expire(self) -> None:
        for key, (_, expires_at) in list(self.data.items()):
            if expires_at is not None and expires_at <= self.now:
                del self.data[key]

    def ttl(self, key: str) -> Optional[float]:
        self._expire()
        if key not in self.data or self.data[key][1] is None:
            return None
        return self.data[key][1] - self.now

    async def ping(self):
        return True

    async def get(self, key):
        self.calls.append(("get", key))
        self._expire()
        entry = self.data.get(key)
        return entry[0] if entry else None

    async def setex(self, key, ttl, value):
        self.calls.append(("setex", key, ttl))
        self.data[key] = (value, self.now + ttl)
        return True

    async def delete(self, *keys):
        self.calls.append(("delete",) + tuple(keys))
        self._expire()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def keys(self, pattern):
        self.calls.append(("keys", pattern))
        self._expire()
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    async def aclose(self):
        self.closed = True


class BrokenRedis(FakeRedis):
    """Connected client whose every command fails."""

    async def ping(self):
        raise RedisConnectionError("Connection refused")

    async def get(self, key):
        self.calls.append(("get", key))
        raise RedisConnectionError("Connection reset by peer")

    async def setex(self, key, ttl, value):
        self.calls.append(("setex", key, ttl))
        raise RedisConnectionError("Connection reset by peer")

    async def delete(self, *keys):
        raise RedisConnectionError("Connection reset by peer")

    async def keys(self, pattern):
        raise RedisConnectionError("Connection reset by peer")


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    return CacheStore(fake_redis)


@pytest.fixture
def broken_redis():
    return BrokenRedis()


@pytest.fixture
def broken_store(broken_redis):
    return CacheStore(broken_redis)


@pytest.fixture
def current_payload():
    """Sample /weather response."""
    return {
        "coord": {"lon": 10.75, "lat": 59.91},
        "weather": [
            {"id": 803, "main": "Clouds", "description": "broken clouds", "icon": "04d"}
        ],
        "base": "stations",
        "main": {
            "temp": 5,
            "feels_like": 2.3,
            "temp_min": 4.1,
            "temp_max": 6.2,
            "pressure": 1014,
            "humidity": 81,
        },
        "visibility": 10000,
        "wind": {"speed": 3.6, "deg": 220},
        "clouds": {"all": 75},
        "dt": 1700000000,
        "sys": {"country": "NO", "sunrise": 1699945200, "sunset": 1699974000},
        "timezone": 3600,
        "name": "Oslo",
        "cod": 200,
    }


def _forecast_item(dt: int, temp: float) -> dict:
    return {
        "dt": dt,
        "main": {
            "temp": temp,
            "feels_like": temp - 1,
            "temp_min": temp - 2,
            "temp_max": temp + 2,
            "pressure": 1010,
            "humidity": 70,
        },
        "weather": [
            {"id": 500, "main": "Rain", "description": "light rain", "icon": "10d"}
        ],
        "wind": {"speed": 4.2, "deg": 180},
        "clouds": {"all": 90},
        "dt_txt": "",
    }


@pytest.fixture
def forecast_payload():
    """Sample /forecast response with 40 three-hour steps."""
    start = 1700000000
    items = [_forecast_item(start + i * 10800, 10 + i) for i in range(40)]
    return {"cod": "200", "cnt": 40, "list": items, "city": {"name": "London", "country": "GB"}}
