"""Typed shapes of the OpenWeather `/weather` and `/forecast` responses.

Field names follow the upstream JSON so that a decoded model serializes back
into the same document that is stored in the cache.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class WeatherCondition(_Frozen):
    """One condition descriptor, e.g. ``800 / Clear / clear sky / 01d``."""

    id: int
    main: str
    description: str
    icon: str


class MainMetrics(_Frozen):
    temp: float
    feels_like: float
    temp_min: Optional[float] = None
    temp_max: Optional[float] = None
    pressure: Optional[float] = None
    humidity: float


class Wind(_Frozen):
    speed: float
    deg: Optional[float] = None


class Clouds(_Frozen):
    all: float = 0


class Coordinates(_Frozen):
    lat: float
    lon: float


class SystemInfo(_Frozen):
    # Locations at sea come back without a country code.
    country: str = ""
    sunrise: int
    sunset: int


class WeatherSnapshot(_Frozen):
    """Current conditions for a single location."""

    name: str
    coord: Optional[Coordinates] = None
    weather: List[WeatherCondition] = Field(min_length=1)
    main: MainMetrics
    wind: Wind
    clouds: Clouds = Clouds()
    sys: SystemInfo


class ForecastEntry(_Frozen):
    """One 3-hour step of the forecast."""

    dt: int
    main: MainMetrics
    weather: List[WeatherCondition] = Field(min_length=1)
    wind: Wind
    clouds: Clouds = Clouds()
    dt_txt: str


class ForecastCity(_Frozen):
    name: str
    country: str = ""


class ForecastSeries(_Frozen):
    """Forecast steps for a city, oldest first."""

    city: ForecastCity
    entries: List[ForecastEntry] = Field(alias="list")

    @field_validator("entries")
    @classmethod
    def _chronological(cls, entries: List[ForecastEntry]) -> List[ForecastEntry]:
        return sorted(entries, key=lambda entry: entry.dt)
