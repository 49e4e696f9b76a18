"""MCP tool handler implementations."""

import json
import logging
import time
from typing import Annotated, Dict, List, Optional

import newrelic.agent
from mcp.server.fastmcp import Context, FastMCP
from pydantic import Field

from ..cache import CacheAside, CacheStore, StoreError
from ..config import CACHE_NAMESPACE, CACHE_TTL_SECONDS
from ..formatting import format_forecast, format_weather
from ..models import ForecastSeries, WeatherSnapshot
from ..openweather import OpenWeatherClient

logger = logging.getLogger("weather.handlers")

ToolResponse = Dict[str, List[Dict[str, str]]]


def text_response(text: str) -> ToolResponse:
    """Wrap ``text`` in the envelope every tool returns."""
    return {"content": [{"type": "text", "text": text}]}


def normalize_city(city: str) -> str:
    return city.strip().lower()


def current_key(city: str) -> str:
    return f"{CACHE_NAMESPACE}:current:{normalize_city(city)}"


def forecast_key(city: str) -> str:
    return f"{CACHE_NAMESPACE}:forecast:{normalize_city(city)}"


def format_coordinate(value: float) -> str:
    """Shortest round-trip form, without a trailing ``.0`` for whole numbers."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def coordinates_key(lat: float, lon: float) -> str:
    return f"{CACHE_NAMESPACE}:current:{format_coordinate(lat)},{format_coordinate(lon)}"


class WeatherToolHandlers:
    """The operations exposed as MCP tools, independent of the transport."""

    def __init__(
        self,
        client: OpenWeatherClient,
        store: CacheStore,
        ttl_seconds: int = CACHE_TTL_SECONDS,
    ):
        """
        Initialize the handlers.

        Args:
            client: Upstream weather API client
            store: Shared cache store (may be disconnected)
            ttl_seconds: Expiry for cached responses
        """
        self._client = client
        self._store = store
        self._ttl = ttl_seconds
        self.cache = CacheAside(store, default_ttl=ttl_seconds)

    async def get_current_weather(self, city: str) -> ToolResponse:
        if not city.strip():
            return text_response("Please provide a city name.")

        t0 = time.time()
        weather = await self.cache.get_or_fetch(
            current_key(city),
            lambda: self._client.current_by_city(city.strip()),
            WeatherSnapshot,
            self._ttl,
        )
        if weather is None:
            logger.info("[get_current_weather] no_data", extra={"city": city})
            return text_response(
                f"Failed to retrieve weather data for {city}. "
                "Please check the city name and try again."
            )

        logger.info(
            "[get_current_weather] complete",
            extra={"city": city, "elapsed_ms": int((time.time() - t0) * 1000)},
        )
        return text_response(format_weather(weather))

    async def get_weather_forecast(self, city: str) -> ToolResponse:
        if not city.strip():
            return text_response("Please provide a city name.")

        t0 = time.time()
        forecast = await self.cache.get_or_fetch(
            forecast_key(city),
            lambda: self._client.forecast_by_city(city.strip()),
            ForecastSeries,
            self._ttl,
        )
        if forecast is None:
            logger.info("[get_weather_forecast] no_data", extra={"city": city})
            return text_response(
                f"Failed to retrieve forecast data for {city}. "
                "Please check the city name and try again."
            )

        logger.info(
            "[get_weather_forecast] complete",
            extra={
                "city": city,
                "entries": len(forecast.entries),
                "elapsed_ms": int((time.time() - t0) * 1000),
            },
        )
        return text_response(format_forecast(forecast))

    async def get_weather_by_coordinates(self, lat: float, lon: float) -> ToolResponse:
        where = f"({format_coordinate(lat)}, {format_coordinate(lon)})"
        if not (-90 <= lat <= 90 and -180 <= lon <= 180):
            return text_response(
                f"Invalid coordinates {where}. Latitude must be between "
                "-90 and 90 and longitude between -180 and 180."
            )

        weather = await self.cache.get_or_fetch(
            coordinates_key(lat, lon),
            lambda: self._client.current_by_coordinates(lat, lon),
            WeatherSnapshot,
            self._ttl,
        )
        if weather is None:
            logger.info("[get_weather_by_coordinates] no_data", extra={"lat": lat, "lon": lon})
            return text_response(
                f"Failed to retrieve weather data for coordinates {where}."
            )
        return text_response(format_weather(weather))

    async def clear_weather_cache(self, city: Optional[str] = None) -> ToolResponse:
        """Drop one city's entries, or every weather entry when no city is given."""
        try:
            if city and city.strip():
                removed = await self._store.delete({current_key(city), forecast_key(city)})
                logger.info(
                    "[clear_weather_cache] city_cleared",
                    extra={"city": city, "removed": removed},
                )
                return text_response(f"Cache cleared for {city}. Removed {removed} entries.")

            keys = await self._store.keys_matching(f"{CACHE_NAMESPACE}:*")
            removed = await self._store.delete(keys)
            logger.info("[clear_weather_cache] all_cleared", extra={"removed": removed})
            return text_response(f"All weather cache cleared. Removed {removed} entries.")
        except StoreError as e:
            newrelic.agent.notice_error()
            logger.error("[clear_weather_cache] error", extra={"city": city, "error": str(e)})
            return text_response(f"Error clearing cache: {e}")

    async def get_cache_stats(self) -> ToolResponse:
        stats = {**self.cache.get_stats(), "connected": self._store.connected}
        return text_response(json.dumps(stats, indent=2))

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._store.close()


def _handlers(ctx: Context) -> WeatherToolHandlers:
    return ctx.request_context.lifespan_context


def _text(response: ToolResponse) -> str:
    return response["content"][0]["text"]


def register_tools(mcp: FastMCP) -> None:
    """
    Register the weather tools with a FastMCP server.

    The server's lifespan must yield a ``WeatherToolHandlers`` instance.

    Args:
        mcp: FastMCP server instance
    """

    @mcp.tool("get-current-weather", description="Get the current weather for a city")
    @newrelic.agent.background_task(name="get-current-weather", group="MCP-Tools")
    async def get_current_weather(
        city: Annotated[str, Field(description="Name of the city to get weather for")],
        ctx: Context,
    ) -> str:
        return _text(await _handlers(ctx).get_current_weather(city))

    @mcp.tool("get-weather-forecast", description="Get a 5-day weather forecast for a city")
    @newrelic.agent.background_task(name="get-weather-forecast", group="MCP-Tools")
    async def get_weather_forecast(
        city: Annotated[str, Field(description="Name of the city to get forecast for")],
        ctx: Context,
    ) -> str:
        return _text(await _handlers(ctx).get_weather_forecast(city))

    @mcp.tool(
        "get-weather-by-coordinates",
        description="Get the current weather using latitude and longitude coordinates",
    )
    @newrelic.agent.background_task(name="get-weather-by-coordinates", group="MCP-Tools")
    async def get_weather_by_coordinates(
        lat: Annotated[float, Field(description="Latitude of the location")],
        lon: Annotated[float, Field(description="Longitude of the location")],
        ctx: Context,
    ) -> str:
        return _text(await _handlers(ctx).get_weather_by_coordinates(lat, lon))

    @mcp.tool("clear-weather-cache", description="Clear cached weather data for a city")
    @newrelic.agent.background_task(name="clear-weather-cache", group="MCP-Tools")
    async def clear_weather_cache(
        ctx: Context,
        city: Annotated[
            Optional[str],
            Field(
                description="Name of the city to clear cache for. "
                "If not provided, clears all weather cache."
            ),
        ] = None,
    ) -> str:
        return _text(await _handlers(ctx).clear_weather_cache(city))

    @mcp.tool(
        "get-cache-stats",
        description="Get weather cache statistics including hits, misses, and hit rate",
    )
    @newrelic.agent.background_task(name="get-cache-stats", group="MCP-Tools")
    async def get_cache_stats(ctx: Context) -> str:
        return _text(await _handlers(ctx).get_cache_stats())
