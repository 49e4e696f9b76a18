"""OpenWeather API client.

One GET per call, no retries. ``request`` raises a ``FetchError`` subclass on
failure; ``fetch`` logs the error where it happens and returns ``None``.
"""

import logging
import time
from enum import Enum
from typing import Dict, Optional, Type, Union

import httpx
import newrelic.agent
from pydantic import BaseModel, ValidationError

from .config import OPENWEATHER_API_BASE
from .models import ForecastSeries, WeatherSnapshot

logger = logging.getLogger("weather.fetcher")

WeatherPayload = Union[WeatherSnapshot, ForecastSeries]


class FetchError(Exception):
    """Base class for failures talking to the upstream weather API."""


class UpstreamStatusError(FetchError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, reason: str = ""):
        self.status_code = status_code
        self.reason = reason
        super().__init__(f"OpenWeather API error: {status_code} {reason}".strip())


class UpstreamUnreachableError(FetchError):
    """The request never produced a response (DNS, connect, timeout...)."""


class DecodeFailureError(FetchError):
    """The body was not JSON or lacked fields the models require."""


class Endpoint(str, Enum):
    CURRENT = "/weather"
    FORECAST = "/forecast"


_MODELS: Dict[Endpoint, Type[BaseModel]] = {
    Endpoint.CURRENT: WeatherSnapshot,
    Endpoint.FORECAST: ForecastSeries,
}


class OpenWeatherClient:
    """Async client for the OpenWeather 2.5 data API (metric units)."""

    def __init__(
        self,
        api_key: str,
        base_url: str = OPENWEATHER_API_BASE,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the client.

        Args:
            api_key: OpenWeather credential sent as ``appid``
            base_url: API root, ``/weather`` and ``/forecast`` are appended
            http_client: Shared client; when given, ``aclose`` leaves it open
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient()

    @newrelic.agent.function_trace()
    async def request(self, endpoint: Endpoint, params: Dict[str, str]) -> WeatherPayload:
        """
        Issue a single GET and decode the body.

        Args:
            endpoint: Which API resource to call
            params: Locator parameters (``q`` or ``lat``/``lon``)

        Returns:
            The decoded ``WeatherSnapshot`` or ``ForecastSeries``

        Raises:
            UpstreamStatusError: Non-success HTTP status
            UpstreamUnreachableError: Transport-level failure
            DecodeFailureError: Malformed JSON or missing required fields
        """
        query = {**params, "appid": self._api_key, "units": "metric"}
        url = f"{self._base_url}{endpoint.value}"
        t0 = time.time()

        try:
            response = await self._http.get(url, params=query)
        except httpx.RequestError as e:
            raise UpstreamUnreachableError(f"Error fetching weather data: {e}") from e

        elapsed_ms = int((time.time() - t0) * 1000)
        logger.debug(
            "[fetcher] response",
            extra={
                "endpoint": endpoint.value,
                "status_code": response.status_code,
                "elapsed_ms": elapsed_ms,
            },
        )

        if not response.is_success:
            raise UpstreamStatusError(response.status_code, response.reason_phrase)

        try:
            return _MODELS[endpoint].model_validate_json(response.content)
        except ValidationError as e:
            raise DecodeFailureError(
                f"Unexpected {endpoint.value} payload: {e.error_count()} validation errors"
            ) from e

    async def fetch(
        self, endpoint: Endpoint, params: Dict[str, str]
    ) -> Optional[WeatherPayload]:
        """Like ``request`` but logs failures and returns ``None`` instead of raising."""
        try:
            return await self.request(endpoint, params)
        except UpstreamStatusError as e:
            newrelic.agent.notice_error()
            logger.error(
                "[fetcher] upstream_status",
                extra={
                    "endpoint": endpoint.value,
                    "status_code": e.status_code,
                    "error": str(e),
                },
            )
        except FetchError as e:
            newrelic.agent.notice_error()
            logger.error(
                "[fetcher] request_error",
                extra={
                    "endpoint": endpoint.value,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
        return None

    async def current_by_city(self, city: str) -> Optional[WeatherSnapshot]:
        return await self.fetch(Endpoint.CURRENT, {"q": city})

    async def forecast_by_city(self, city: str) -> Optional[ForecastSeries]:
        return await self.fetch(Endpoint.FORECAST, {"q": city})

    async def current_by_coordinates(
        self, lat: float, lon: float
    ) -> Optional[WeatherSnapshot]:
        return await self.fetch(Endpoint.CURRENT, {"lat": str(lat), "lon": str(lon)})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()
