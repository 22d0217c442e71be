"""Daily forecast from WeatherAPI.com ``forecast.json``."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any

from garden_forecast.datasources.base import WeatherProvider
from garden_forecast.datasources.weatherapi.client import MAX_DAYS, WEATHERAPI_FORECAST
from garden_forecast.schemas import DailyForecast
from garden_forecast.services.http import get_json, session

if TYPE_CHECKING:
    from garden_forecast.schemas import Coordinates

PROVIDER = "weatherapi"


def fetch_forecast(
    lat: float,
    lon: float,
    api_key: str,
    *,
    days: int = MAX_DAYS,
    timeout: float | None = None,
) -> dict[str, Any]:
    """
    Fetch up to ``days`` days of daily aggregates.

    Returns:
        Raw API response with ``forecast.forecastday`` list.
    """
    params: dict[str, str | int] = {
        "key": api_key,
        "q": f"{lat},{lon}",
        "days": min(days, MAX_DAYS),
        "aqi": "no",
        "alerts": "no",
    }
    result: dict[str, Any] = get_json(
        session, WEATHERAPI_FORECAST, provider=PROVIDER, params=params, timeout=timeout
    )
    return result


def normalize_forecast(raw: dict[str, Any], *, confidence: float = 0.85) -> list[DailyForecast]:
    """Map ``forecastday`` entries field by field."""
    days: list[DailyForecast] = []
    for entry in raw["forecast"]["forecastday"]:
        day = entry["day"]
        high = float(day["maxtemp_f"])
        low = float(day["mintemp_f"])
        avg = float(day.get("avgtemp_f", (high + low) / 2))
        days.append(
            DailyForecast(
                date=date.fromisoformat(entry["date"]),
                temp_high=high,
                temp_low=low,
                # avgtemp_f is an hourly mean and can drift a hair outside the extremes
                temp_avg=min(max(avg, low), high),
                humidity=day.get("avghumidity"),
                precipitation=float(day.get("totalprecip_in", 0.0)),
                precipitation_probability=day.get("daily_chance_of_rain"),
                wind_speed_mph=day.get("maxwind_mph"),
                short_description=day["condition"]["text"],
                confidence=confidence,
                source_provider=PROVIDER,
            )
        )
    return days


class WeatherAPIProvider(WeatherProvider):
    """WeatherAPI.com. Requires an API key; longest live horizon."""

    name = PROVIDER
    max_days = MAX_DAYS
    priority = 1
    requires_key = True
    confidence = 0.85

    def fetch(
        self,
        coordinates: Coordinates,
        horizon_days: int,
        credential: str | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return fetch_forecast(
            coordinates.latitude,
            coordinates.longitude,
            credential or "",
            days=self.clamp_horizon(horizon_days),
            timeout=timeout,
        )

    def parse(self, raw: dict[str, Any]) -> list[DailyForecast]:
        return normalize_forecast(raw, confidence=self.confidence)
