"""
Weather pipeline: provider result -> enriched garden forecast.

Whatever branch produced the days (live provider, cache, historical), the
same steps run on them::

    orchestrator -> extend to horizon -> enrich -> summarize/alerts/factors
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from garden_forecast.analysis import (
    enrich_forecast,
    extreme_weather_events,
    forecast_summary,
    generate_alerts,
    monthly_summary,
    simulation_factors,
    weekly_summaries,
)
from garden_forecast.datasources.historical import historical_forecast
from garden_forecast.orchestrator import WeatherOrchestrator
from garden_forecast.schemas import HISTORICAL_SOURCE, GardenForecast, ProviderResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from garden_forecast.schemas import DailyForecast, ForecastRequest

logger = logging.getLogger(__name__)


def extend_to_horizon(days: list[DailyForecast], horizon_days: int) -> list[DailyForecast]:
    """Pad a short live forecast with historical-normal days up to ``horizon_days``."""
    if len(days) >= horizon_days or not days:
        return days[:horizon_days]
    missing = horizon_days - len(days)
    logger.debug("Extending %d-day forecast with %d historical days", len(days), missing)
    return days + historical_forecast(days[-1].date + timedelta(days=1), missing)


class WeatherService:
    """Produces :class:`GardenForecast` objects for a location."""

    def __init__(
        self,
        orchestrator: WeatherOrchestrator | None = None,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.orchestrator = orchestrator or WeatherOrchestrator()
        self._now = now

    def close(self) -> None:
        self.orchestrator.close()

    def __enter__(self) -> WeatherService:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get_garden_forecast(
        self, request: ForecastRequest, deadline: float | None = None
    ) -> GardenForecast:
        """
        Fetch, enrich and summarize a forecast.

        Raises:
            InvalidInput: For malformed coordinates or horizon.
        """
        result = self.orchestrator.get_forecast(request, deadline=deadline)
        return self.build(request, result)

    def fallback_forecast(self, request: ForecastRequest) -> GardenForecast:
        """Historical-average forecast that never touches the network."""
        days = self.orchestrator.historical.forecast(request.horizon_days)
        result = ProviderResult(source=HISTORICAL_SOURCE, days=days, fallback=True)
        return self.build(request, result)

    def build(self, request: ForecastRequest, result: ProviderResult) -> GardenForecast:
        days = extend_to_horizon(result.days, request.horizon_days)
        enriched = enrich_forecast(days)

        return GardenForecast(
            generated_at=self._now(),
            coordinates=request.coordinates,
            horizon_days=request.horizon_days,
            source=result.source,
            fallback=result.fallback,
            cached=result.cached,
            daily=enriched,
            summary=forecast_summary(enriched),
            weekly=weekly_summaries(enriched),
            monthly=monthly_summary(enriched),
            alerts=generate_alerts(enriched),
            extreme_events=extreme_weather_events(enriched),
            simulation_factors=simulation_factors(enriched),
            attempts=result.attempts,
        )
