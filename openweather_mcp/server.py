"""
MCP (Model Context Protocol) server exposing OpenWeather data as tools.

Tools:
- get-current-weather / get-weather-forecast for a city name
- get-weather-by-coordinates for a latitude/longitude pair
- clear-weather-cache and get-cache-stats for cache administration

Responses are cached in Redis for ten minutes. If Redis is unreachable at
startup the server keeps running and every request goes straight upstream.
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import click
import httpx
import newrelic.agent
from mcp.server.fastmcp import FastMCP

from . import __version__, config
from .cache import CacheStore
from .handlers import WeatherToolHandlers, register_tools
from .logging_config import configure_logging
from .openweather import OpenWeatherClient

logger = logging.getLogger("weather.server")

INSTRUCTIONS = (
    "You are a Weather Assistant that can retrieve current weather and "
    "forecasts for locations around the world. You can provide temperature, "
    "conditions, humidity, wind, and other weather information."
)


class WeatherRuntime:
    """
    Process-wide cache store, HTTP client and handlers.

    The SDK enters a server lifespan once per client session; every session
    shares the handlers built on first use. ``aclose`` runs once, when the
    server stops.
    """

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the runtime.

        Args:
            http_client: Optional client handed to ``OpenWeatherClient``
        """
        self._http_client = http_client
        self._handlers: Optional[WeatherToolHandlers] = None
        self._lock = asyncio.Lock()

    async def handlers(self) -> WeatherToolHandlers:
        async with self._lock:
            if self._handlers is None:
                store = await CacheStore.connect(
                    config.get_redis_host(),
                    config.get_redis_port(),
                    config.get_redis_connect_timeout(),
                )
                client = OpenWeatherClient(
                    api_key=config.get_openweather_api_key(),
                    http_client=self._http_client,
                )
                self._handlers = WeatherToolHandlers(
                    client, store, ttl_seconds=config.CACHE_TTL_SECONDS
                )
                logger.info("[runtime] ready", extra={"cache_connected": store.connected})
        return self._handlers

    async def aclose(self) -> None:
        if self._handlers is not None:
            await self._handlers.aclose()
            self._handlers = None
            logger.info("[runtime] closed")


def create_server(runtime: Optional[WeatherRuntime] = None) -> FastMCP:
    """Build the FastMCP instance with every weather tool registered."""
    runtime = runtime or WeatherRuntime()

    @asynccontextmanager
    async def weather_lifespan(server: FastMCP) -> AsyncIterator[WeatherToolHandlers]:
        yield await runtime.handlers()

    mcp = FastMCP(
        name="openweather-api-mcp",
        instructions=INSTRUCTIONS,
        lifespan=weather_lifespan,
        log_level="WARNING",
    )
    register_tools(mcp)
    return mcp


async def serve(mcp: FastMCP, runtime: WeatherRuntime, transport: str) -> None:
    """Run ``mcp`` on ``transport`` and release the runtime when it stops."""
    runners = {
        "stdio": mcp.run_stdio_async,
        "sse": mcp.run_sse_async,
        "streamable-http": mcp.run_streamable_http_async,
    }
    # Connect the cache store before the first client arrives.
    await runtime.handlers()
    try:
        await runners[transport]()
    finally:
        await runtime.aclose()


def init_newrelic() -> None:
    if config.is_new_relic_enabled():
        # Initialize with environment variables (no ini file needed)
        newrelic.agent.initialize()
        newrelic.agent.register_application(timeout=10)


@click.command()
@click.option(
    "--transport",
    type=click.Choice(config.TRANSPORTS),
    default=config.get_transport,
    help="MCP transport to serve on",
)
@click.option("--host", default="0.0.0.0", help="Bind address for HTTP transports")
@click.option(
    "--port", type=int, default=config.get_server_port, help="Port for HTTP transports"
)
def main(transport: str, host: str, port: int) -> None:
    """Run the OpenWeather MCP server."""
    init_newrelic()
    configure_logging(config.get_log_level())

    runtime = WeatherRuntime()
    mcp = create_server(runtime)
    mcp.settings.host = host
    mcp.settings.port = port

    logger.info(
        "[startup] openweather mcp server starting",
        extra={
            "version": __version__,
            "transport": transport,
            "port": port,
            "cache_ttl_seconds": config.CACHE_TTL_SECONDS,
        },
    )

    t0 = time.time()
    asyncio.run(serve(mcp, runtime, transport))

    logger.info(
        "[shutdown] openweather mcp server stopped",
        extra={"elapsed_ms": int((time.time() - t0) * 1000)},
    )


if __name__ == "__main__":
    main()
