"""Daily forecasts from OpenWeatherMap.

Two endpoints: the 3-hourly forecast (up to 5 days), which is aggregated to
calendar days here, and One Call 3.0, which already reports daily values.
"""

from __future__ import annotations

import statistics
from collections import defaultdict
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from garden_forecast.datasources.base import WeatherProvider
from garden_forecast.datasources.openweathermap.client import (
    MAX_DAYS,
    MM_PER_INCH,
    OWM_FORECAST_API,
    OWM_ONECALL_API,
    SHORT_RANGE_MAX_DAYS,
    UNITS,
)
from garden_forecast.schemas import DailyForecast
from garden_forecast.services.http import get_json, session

if TYPE_CHECKING:
    from garden_forecast.schemas import Coordinates

PROVIDER = "openweathermap"


def _local_date(timestamp: int, utc_offset_seconds: int) -> date:
    return datetime.fromtimestamp(timestamp + utc_offset_seconds, tz=UTC).date()


def _mm_to_in(mm: float) -> float:
    return round(mm / MM_PER_INCH, 2)


def fetch_forecast(
    lat: float,
    lon: float,
    api_key: str,
    *,
    days: int = SHORT_RANGE_MAX_DAYS,
    timeout: float | None = None,
) -> dict[str, Any]:
    """
    Fetch the forecast from the endpoint that covers ``days``.

    Returns:
        ``{"endpoint": "forecast" | "onecall", "payload": <raw response>}``
    """
    params: dict[str, str | float] = {"lat": lat, "lon": lon, "appid": api_key, "units": UNITS}
    if days <= SHORT_RANGE_MAX_DAYS:
        payload = get_json(
            session, OWM_FORECAST_API, provider=PROVIDER, params=params, timeout=timeout
        )
        return {"endpoint": "forecast", "payload": payload}

    params["exclude"] = "current,minutely,hourly,alerts"
    payload = get_json(session, OWM_ONECALL_API, provider=PROVIDER, params=params, timeout=timeout)
    return {"endpoint": "onecall", "payload": payload}


def normalize_three_hourly(
    payload: dict[str, Any], *, confidence: float = 0.8
) -> list[DailyForecast]:
    """Aggregate 3-hour records to local calendar days.

    High/low are the extremes of the records, the mean is the mean record
    temperature, precipitation is the summed rain and snow, and the
    description is the day's first record.
    """
    offset = int(payload.get("city", {}).get("timezone", 0))
    by_day: dict[date, list[dict[str, Any]]] = defaultdict(list)
    for item in payload["list"]:
        by_day[_local_date(item["dt"], offset)].append(item)

    days: list[DailyForecast] = []
    for day, items in sorted(by_day.items()):
        temps = [float(i["main"]["temp"]) for i in items]
        humidity = [float(i["main"]["humidity"]) for i in items if "humidity" in i["main"]]
        winds = [float(i["wind"]["speed"]) for i in items if "wind" in i]
        precip_mm = sum(
            i.get("rain", {}).get("3h", 0.0) + i.get("snow", {}).get("3h", 0.0) for i in items
        )
        pops = [float(i.get("pop", 0.0)) for i in items]
        days.append(
            DailyForecast(
                date=day,
                temp_high=max(temps),
                temp_low=min(temps),
                temp_avg=statistics.mean(temps),
                humidity=round(statistics.mean(humidity)) if humidity else None,
                precipitation=_mm_to_in(precip_mm),
                precipitation_probability=round(max(pops) * 100),
                wind_speed_mph=round(statistics.mean(winds), 1) if winds else None,
                short_description=items[0]["weather"][0]["description"],
                confidence=confidence,
                source_provider=PROVIDER,
            )
        )
    return days


def normalize_onecall(payload: dict[str, Any], *, confidence: float = 0.8) -> list[DailyForecast]:
    """Map One Call ``daily`` entries directly."""
    offset = int(payload.get("timezone_offset", 0))
    days: list[DailyForecast] = []
    for item in payload["daily"]:
        high = float(item["temp"]["max"])
        low = float(item["temp"]["min"])
        weather = item["weather"][0]
        days.append(
            DailyForecast(
                date=_local_date(item["dt"], offset),
                temp_high=high,
                temp_low=low,
                temp_avg=(high + low) / 2,
                humidity=item.get("humidity"),
                precipitation=_mm_to_in(item.get("rain", 0.0) + item.get("snow", 0.0)),
                precipitation_probability=round(float(item.get("pop", 0.0)) * 100),
                wind_speed_mph=item.get("wind_speed"),
                short_description=weather["description"],
                detailed_description=item.get("summary"),
                confidence=confidence,
                source_provider=PROVIDER,
            )
        )
    return days


class OpenWeatherMapProvider(WeatherProvider):
    """OpenWeatherMap. Requires an API key."""

    name = PROVIDER
    max_days = MAX_DAYS
    priority = 2
    requires_key = True
    confidence = 0.8

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
        if raw["endpoint"] == "onecall":
            return normalize_onecall(raw["payload"], confidence=self.confidence)
        return normalize_three_hourly(raw["payload"], confidence=self.confidence)
