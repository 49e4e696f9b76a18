"""Tests for the weather tool handlers."""

import asyncio
import json

import httpx
import pytest

from openweather_mcp.cache import CacheStore
from openweather_mcp.handlers import WeatherToolHandlers, text_response
from openweather_mcp.handlers.tool_handlers import (
    coordinates_key,
    current_key,
    forecast_key,
)
from openweather_mcp.openweather import OpenWeatherClient


class Upstream:
    """MockTransport handler serving canned payloads and recording requests."""

    def __init__(self, current, forecast, status_code=200):
        self.current = current
        self.forecast = forecast
        self.status_code = status_code
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"message": "city not found"})
        if request.url.path.endswith("/forecast"):
            return httpx.Response(200, json=self.forecast)
        return httpx.Response(200, json=self.current)


@pytest.fixture
def upstream(current_payload, forecast_payload):
    return Upstream(current_payload, forecast_payload)


def make_handlers(upstream, store):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    client = OpenWeatherClient(api_key="test_key", http_client=http_client)
    return WeatherToolHandlers(client, store, ttl_seconds=600)


def text_of(response):
    assert list(response) == ["content"]
    (item,) = response["content"]
    assert item["type"] == "text"
    return item["text"]


def test_text_response_envelope():
    assert text_response("hi") == {"content": [{"type": "text", "text": "hi"}]}


def test_cache_keys_are_namespaced():
    assert current_key("Paris") == "weather:current:paris"
    assert current_key("  Paris ") == "weather:current:paris"
    assert forecast_key("Paris") == "weather:forecast:paris"
    assert coordinates_key(48.85, 2.35) == "weather:current:48.85,2.35"
    assert coordinates_key(40.0, -74.0) == "weather:current:40,-74"
    assert coordinates_key(35.6895, 139.6917) == "weather:current:35.6895,139.6917"


def test_get_current_weather_caches_response(upstream, store, fake_redis):
    handlers = make_handlers(upstream, store)

    async def scenario():
        first = await handlers.get_current_weather("Oslo")
        second = await handlers.get_current_weather("oslo")
        return first, second

    first, second = asyncio.run(scenario())

    assert text_of(first).startswith("Current weather for Oslo, NO:")
    assert text_of(second) == text_of(first)
    assert len(upstream.requests) == 1
    assert fake_redis.ttl("weather:current:oslo") == 600


def test_get_current_weather_failure_text(current_payload, forecast_payload, store, fake_redis):
    upstream = Upstream(current_payload, forecast_payload, status_code=404)
    handlers = make_handlers(upstream, store)

    response = asyncio.run(handlers.get_current_weather("Atlantis"))

    assert text_of(response) == (
        "Failed to retrieve weather data for Atlantis. "
        "Please check the city name and try again."
    )
    assert fake_redis.data == {}


def test_blank_city_does_not_fetch(upstream, store):
    handlers = make_handlers(upstream, store)

    response = asyncio.run(handlers.get_weather_forecast("   "))

    assert text_of(response) == "Please provide a city name."
    assert upstream.requests == []


def test_get_weather_forecast(upstream, store, fake_redis):
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.get_weather_forecast("London")))

    assert text.startswith("5-day forecast for London, GB:")
    assert text.count("Temperature:") == 5
    assert "weather:forecast:london" in fake_redis.data
    assert upstream.requests[0].url.params["q"] == "London"


def test_get_weather_forecast_failure_text(current_payload, forecast_payload, store):
    upstream = Upstream(current_payload, forecast_payload, status_code=500)
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.get_weather_forecast("London")))

    assert text.startswith("Failed to retrieve forecast data for London.")


def test_get_weather_by_coordinates(upstream, store, fake_redis):
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.get_weather_by_coordinates(59.91, 10.75)))

    assert text.startswith("Current weather for Oslo, NO:")
    assert "weather:current:59.91,10.75" in fake_redis.data


def test_get_weather_by_coordinates_failure_text(current_payload, forecast_payload, store):
    upstream = Upstream(current_payload, forecast_payload, status_code=400)
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.get_weather_by_coordinates(1.5, 2.5)))

    assert text == "Failed to retrieve weather data for coordinates (1.5, 2.5)."


def test_out_of_range_coordinates_do_not_fetch(upstream, store):
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.get_weather_by_coordinates(91.0, 0.0)))

    assert text.startswith("Invalid coordinates (91, 0).")
    assert upstream.requests == []


def test_handlers_work_without_cache(upstream):
    handlers = make_handlers(upstream, CacheStore(None))

    async def scenario():
        await handlers.get_current_weather("Oslo")
        return await handlers.get_current_weather("Oslo")

    text = text_of(asyncio.run(scenario()))

    assert text.startswith("Current weather for Oslo, NO:")
    assert len(upstream.requests) == 2


def test_clear_cache_for_city_leaves_other_cities(upstream, store, fake_redis):
    handlers = make_handlers(upstream, store)

    async def scenario():
        await handlers.get_current_weather("Paris")
        await handlers.get_weather_forecast("Paris")
        await handlers.get_current_weather("Berlin")
        await handlers.get_weather_by_coordinates(48.85, 2.35)
        return await handlers.clear_weather_cache("Paris")

    text = text_of(asyncio.run(scenario()))

    assert text == "Cache cleared for Paris. Removed 2 entries."
    assert set(fake_redis.data) == {
        "weather:current:berlin",
        "weather:current:48.85,2.35",
    }


def test_clear_all_cache_reports_count(upstream, store, fake_redis):
    fake_redis.data["session:abc"] = ("keep", None)
    handlers = make_handlers(upstream, store)

    async def scenario():
        await handlers.get_current_weather("Paris")
        await handlers.get_weather_forecast("Paris")
        await handlers.get_current_weather("Berlin")
        return await handlers.clear_weather_cache()

    text = text_of(asyncio.run(scenario()))

    assert text == "All weather cache cleared. Removed 3 entries."
    assert set(fake_redis.data) == {"session:abc"}


def test_clear_all_cache_when_empty(upstream, store, fake_redis):
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.clear_weather_cache(None)))

    assert text == "All weather cache cleared. Removed 0 entries."
    assert not any(call[0] == "delete" for call in fake_redis.calls)


def test_clear_cache_reports_store_errors(upstream):
    handlers = make_handlers(upstream, CacheStore(None))

    text = text_of(asyncio.run(handlers.clear_weather_cache("Paris")))

    assert text == "Error clearing cache: cache store is not connected"


def test_get_cache_stats(upstream, store):
    handlers = make_handlers(upstream, store)

    async def scenario():
        await handlers.get_current_weather("Oslo")
        await handlers.get_current_weather("Oslo")
        return await handlers.get_cache_stats()

    stats = json.loads(text_of(asyncio.run(scenario())))

    assert stats == {
        "hits": 1.0,
        "misses": 1.0,
        "bypasses": 0.0,
        "hit_rate_percent": 50.0,
        "connected": True,
    }


def test_whole_number_coordinates_drop_trailing_zero(current_payload, forecast_payload, store):
    upstream = Upstream(current_payload, forecast_payload, status_code=404)
    handlers = make_handlers(upstream, store)

    text = text_of(asyncio.run(handlers.get_weather_by_coordinates(40.0, -74.0)))

    assert text == "Failed to retrieve weather data for coordinates (40, -74)."
