"""Synthetic forecast from monthly climate normals.

Each day takes its month's normal high/low and nudges them with a small
annual sine keyed on day-of-year, so consecutive days are not identical.
No network access: this provider always succeeds and is the last resort.
"""

from __future__ import annotations

import math
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

from garden_forecast.datasources.base import WeatherProvider
from garden_forecast.reference.climate import normal_for_month
from garden_forecast.schemas import HISTORICAL_SOURCE, DailyForecast

if TYPE_CHECKING:
    from collections.abc import Callable

    from garden_forecast.schemas import Coordinates

MAX_DAYS = 14
CONFIDENCE = 0.6
VARIATION_AMPLITUDE_F = 3.0


def daily_variation(day: date) -> float:
    doy = day.timetuple().tm_yday
    return math.sin(doy / 365 * 2 * math.pi) * VARIATION_AMPLITUDE_F


def historical_day(day: date) -> DailyForecast:
    """Normal conditions for one calendar day."""
    normal = normal_for_month(day.month)
    variation = daily_variation(day)
    return DailyForecast(
        date=day,
        temp_high=round(normal.temp_high + variation),
        temp_low=round(normal.temp_low + variation),
        temp_avg=round(normal.temp_avg + variation),
        humidity=normal.humidity,
        precipitation=normal.daily_precipitation,
        short_description=normal.description,
        confidence=CONFIDENCE,
        source_provider=HISTORICAL_SOURCE,
    )


def historical_forecast(start: date, days: int) -> list[DailyForecast]:
    return [historical_day(start + timedelta(days=i)) for i in range(days)]


class HistoricalProvider(WeatherProvider):
    """Climatological fallback. Never touches the network."""

    name = "historical"
    max_days = MAX_DAYS
    priority = 99
    requires_key = False
    confidence = CONFIDENCE
    live = False

    def __init__(self, today: Callable[[], date] = date.today) -> None:
        self._today = today

    def fetch(
        self,
        coordinates: Coordinates,
        horizon_days: int,
        credential: str | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        return {"start": self._today().isoformat(), "days": self.clamp_horizon(horizon_days)}

    def parse(self, raw: dict[str, Any]) -> list[DailyForecast]:
        return historical_forecast(date.fromisoformat(raw["start"]), int(raw["days"]))

    def forecast(self, horizon_days: int, start: date | None = None) -> list[DailyForecast]:
        """Synthesize ``horizon_days`` days beginning at ``start`` (default today)."""
        return historical_forecast(start or self._today(), self.clamp_horizon(horizon_days))
