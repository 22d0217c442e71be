"""7-day forecast from the NWS gridpoint API.

NWS works in two steps: ``/points/{lat},{lon}`` resolves the coordinates to a
forecast office grid and returns the grid's forecast URL, which then serves
alternating day and night periods. Normalization pairs each daytime period
with the night that follows it to get the day's high and low.
"""

from __future__ import annotations

import statistics
from datetime import datetime
from typing import TYPE_CHECKING, Any

from garden_forecast.datasources.base import WeatherProvider
from garden_forecast.datasources.nws.client import (
    DAY_NIGHT_SPREAD_F,
    DEFAULT_HUMIDITY,
    HEADERS,
    MAX_DAYS,
    NWS_POINTS,
    PRECIP_ESTIMATES,
)
from garden_forecast.errors import MalformedResponse
from garden_forecast.schemas import DailyForecast
from garden_forecast.services.http import get_json, session

if TYPE_CHECKING:
    from garden_forecast.schemas import Coordinates

PROVIDER = "nws"


def fetch_points(lat: float, lon: float, *, timeout: float | None = None) -> dict[str, Any]:
    """Resolve coordinates to the NWS grid metadata (``properties.forecast`` etc.)."""
    result: dict[str, Any] = get_json(
        session,
        NWS_POINTS.format(lat=lat, lon=lon),
        provider=PROVIDER,
        headers=HEADERS,
        timeout=timeout,
    )
    return result


def fetch_forecast(lat: float, lon: float, *, timeout: float | None = None) -> dict[str, Any]:
    """
    Fetch the day/night period forecast for a point.

    Returns:
        ``{"grid": "RAH/63,67", "forecast": <raw forecast response>}``
    """
    points = fetch_points(lat, lon, timeout=timeout)
    try:
        props = points["properties"]
        forecast_url = props["forecast"]
    except (KeyError, TypeError) as e:
        msg = f"points response has no forecast URL: {e}"
        raise MalformedResponse(PROVIDER, msg) from e

    grid = f"{props.get('gridId', '?')}/{props.get('gridX', '?')},{props.get('gridY', '?')}"
    forecast = get_json(session, forecast_url, provider=PROVIDER, headers=HEADERS, timeout=timeout)
    return {"grid": grid, "forecast": forecast}


def _temperature_f(period: dict[str, Any]) -> float | None:
    """Period temperature in F. Handles both the plain and quantitative-value forms."""
    value = period.get("temperature")
    unit = period.get("temperatureUnit", "F")
    if isinstance(value, dict):
        unit = "C" if "degC" in str(value.get("unitCode", "")) else "F"
        value = value.get("value")
    if value is None:
        return None
    temp = float(value)
    if unit == "C":
        temp = temp * 9 / 5 + 32
    return temp


def _quantity(period: dict[str, Any] | None, field: str) -> float | None:
    if period is None:
        return None
    value = period.get(field)
    if isinstance(value, dict):
        value = value.get("value")
    return None if value is None else float(value)


def estimate_precipitation(text: str, probability: float) -> float:
    """Rough daily precipitation (in) from forecast wording and probability."""
    lowered = text.lower()
    for keywords, likely, unlikely in PRECIP_ESTIMATES:
        if any(k in lowered for k in keywords):
            return likely if probability > 50 else unlikely
    return 0.0


def _pair_periods(
    periods: list[dict[str, Any]],
) -> list[tuple[dict[str, Any] | None, dict[str, Any] | None]]:
    """Group periods into (day, night) pairs. Either member may be missing."""
    pairs: list[tuple[dict[str, Any] | None, dict[str, Any] | None]] = []
    i = 0
    while i < len(periods):
        period = periods[i]
        if period.get("isDaytime"):
            following = periods[i + 1] if i + 1 < len(periods) else None
            if following is not None and not following.get("isDaytime"):
                pairs.append((period, following))
                i += 2
                continue
            pairs.append((period, None))
        else:
            # Forecast issued in the evening starts with "Tonight"
            pairs.append((None, period))
        i += 1
    return pairs


def _pair_to_day(
    day: dict[str, Any] | None, night: dict[str, Any] | None, confidence: float
) -> DailyForecast:
    lead = day or night
    if lead is None:
        msg = "empty day/night pair"
        raise ValueError(msg)

    high = _temperature_f(day) if day is not None else None
    low = _temperature_f(night) if night is not None else None
    if high is not None and low is None:
        low = high - DAY_NIGHT_SPREAD_F
    elif low is not None and high is None:
        high = low + DAY_NIGHT_SPREAD_F
    if high is None or low is None:
        msg = f"period {lead.get('name')!r} has no temperature"
        raise ValueError(msg)
    # Occasionally the night reads warmer than the day (warm front)
    low, high = min(low, high), max(low, high)

    humidities = [
        h
        for h in (_quantity(day, "relativeHumidity"), _quantity(night, "relativeHumidity"))
        if h is not None
    ]
    probabilities = [
        p
        for p in (
            _quantity(day, "probabilityOfPrecipitation"),
            _quantity(night, "probabilityOfPrecipitation"),
        )
        if p is not None
    ]
    probability = max(probabilities) if probabilities else 0.0

    text = " ".join(p.get("shortForecast", "") for p in (day, night) if p is not None)

    return DailyForecast(
        date=datetime.fromisoformat(lead["startTime"]).date(),
        temp_high=high,
        temp_low=low,
        temp_avg=(high + low) / 2,
        humidity=statistics.mean(humidities) if humidities else DEFAULT_HUMIDITY,
        precipitation=estimate_precipitation(text, probability),
        precipitation_probability=probability,
        wind_speed_text=lead.get("windSpeed"),
        short_description=lead.get("shortForecast", ""),
        detailed_description=lead.get("detailedForecast"),
        confidence=confidence,
        source_provider=PROVIDER,
    )


def normalize_forecast(raw: dict[str, Any], *, confidence: float = 0.75) -> list[DailyForecast]:
    """Turn an NWS period list into one row per calendar day."""
    periods = raw["forecast"]["properties"]["periods"]
    return [_pair_to_day(day, night, confidence) for day, night in _pair_periods(periods)]


class NWSProvider(WeatherProvider):
    """U.S. National Weather Service. Free, keyless, U.S. coverage only."""

    name = PROVIDER
    max_days = MAX_DAYS
    priority = 3
    requires_key = False
    confidence = 0.75

    def fetch(
        self,
        coordinates: Coordinates,
        horizon_days: int,
        credential: str | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return fetch_forecast(coordinates.latitude, coordinates.longitude, timeout=timeout)

    def parse(self, raw: dict[str, Any]) -> list[DailyForecast]:
        return normalize_forecast(raw, confidence=self.confidence)
