"""Plain-text rendering of weather models for tool responses."""

from datetime import datetime, timezone
from typing import List, Optional

from .models import ForecastEntry, ForecastSeries, WeatherCondition, WeatherSnapshot

FORECAST_ENTRY_LIMIT = 5


def _num(value: float) -> str:
    return f"{value:g}"


def _utc(timestamp: int, fmt: str) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(fmt)


def _conditions(weather: List[WeatherCondition]) -> Optional[str]:
    if not weather:
        return None
    return f"Conditions: {weather[0].main} - {weather[0].description}"


def _place(name: str, country: str) -> str:
    return f"{name}, {country}" if country else name


def format_weather(data: WeatherSnapshot) -> str:
    """Render current conditions, one fact per line."""
    lines = [
        f"Current weather for {_place(data.name, data.sys.country)}:",
        f"Temperature: {_num(data.main.temp)}°C "
        f"(feels like {_num(data.main.feels_like)}°C)",
    ]
    conditions = _conditions(data.weather)
    if conditions:
        lines.append(conditions)
    lines.append(f"Humidity: {_num(data.main.humidity)}%")

    wind = f"Wind: {_num(data.wind.speed)} m/s"
    if data.wind.deg is not None:
        wind += f", direction: {_num(data.wind.deg)}°"
    lines.append(wind)

    lines.append(f"Cloud cover: {_num(data.clouds.all)}%")
    lines.append(f"Sunrise: {_utc(data.sys.sunrise, '%H:%M:%S UTC')}")
    lines.append(f"Sunset: {_utc(data.sys.sunset, '%H:%M:%S UTC')}")
    return "\n".join(lines)


def _format_entry(entry: ForecastEntry) -> str:
    lines = [
        f"{_utc(entry.dt, '%Y-%m-%d %H:%M UTC')}:",
        f"Temperature: {_num(entry.main.temp)}°C "
        f"(feels like {_num(entry.main.feels_like)}°C)",
    ]
    conditions = _conditions(entry.weather)
    if conditions:
        lines.append(conditions)
    lines.append(f"Humidity: {_num(entry.main.humidity)}%")
    lines.append(f"Wind: {_num(entry.wind.speed)} m/s")
    return "\n".join(lines)


def format_forecast(data: ForecastSeries) -> str:
    """Render the first five forecast steps, oldest first."""
    items = [_format_entry(entry) for entry in data.entries[:FORECAST_ENTRY_LIMIT]]
    header = f"5-day forecast for {_place(data.city.name, data.city.country)}:"
    return "\n\n".join([header, *items])
