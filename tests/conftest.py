"""Shared fixtures for the garden forecast tests."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from garden_forecast.config import Settings
from garden_forecast.schemas import DailyForecast

if TYPE_CHECKING:
    from collections.abc import Callable


def make_day(day: date, high: float = 75.0, low: float = 55.0, **overrides: Any) -> DailyForecast:
    fields: dict[str, Any] = {
        "date": day,
        "temp_high": high,
        "temp_low": low,
        "temp_avg": (high + low) / 2,
        "humidity": 60.0,
        "precipitation": 0.0,
        "precipitation_probability": 10.0,
        "short_description": "Partly cloudy",
        "source_provider": "test",
    }
    fields.update(overrides)
    return DailyForecast(**fields)


def make_days(start: date, count: int, **overrides: Any) -> list[DailyForecast]:
    return [make_day(start + timedelta(days=i), **overrides) for i in range(count)]


@pytest.fixture
def day_factory() -> Callable[..., DailyForecast]:
    return make_day


@pytest.fixture
def days_factory() -> Callable[..., list[DailyForecast]]:
    return make_days


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment: no keys, no deadline, no backoff."""
    return Settings(
        _env_file=None,
        weatherapi_key="",
        openweathermap_key="",
        request_deadline=None,
        retry_backoff=0.0,
    )
