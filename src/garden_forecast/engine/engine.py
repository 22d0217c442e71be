"""
Combined garden forecast: weather, growth, risk, economics, recommendations.

The five sub-forecasts do not depend on each other, so they run concurrently
on a thread pool and are joined before the report is assembled. A failing
sub-forecast is logged and replaced by its default (``None`` for weather, an
empty model otherwise); it never takes the others down with it.
"""

from __future__ import annotations

import logging
import statistics
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING, Any

from garden_forecast.engine.economics import forecast_economics
from garden_forecast.engine.growth import forecast_growth
from garden_forecast.engine.models import (
    EconomicForecast,
    ForecastReport,
    GrowthForecast,
    ReportMetadata,
    ReportSummary,
    RiskAssessment,
    RiskLevel,
)
from garden_forecast.engine.recommendations import recommend
from garden_forecast.engine.risk import assess_risks
from garden_forecast.orchestrator import MAX_HORIZON_DAYS, make_request
from garden_forecast.pipeline import WeatherService

if TYPE_CHECKING:
    from collections.abc import Callable
    from concurrent.futures import Future

    from garden_forecast.engine.models import GardenConfig, Recommendation
    from garden_forecast.schemas import GardenForecast

logger = logging.getLogger(__name__)

MODEL_VERSIONS = {
    "weather": "1.0.0",
    "growth": "1.0.0",
    "economic": "1.0.0",
    "risk": "1.0.0",
}

OUTLOOK_BY_RISK = {
    RiskLevel.LOW: "favorable",
    RiskLevel.MODERATE: "fair",
    RiskLevel.HIGH: "challenging",
    RiskLevel.CRITICAL: "poor",
}

TOP_N = 3


class ForecastingEngine:
    """Builds a :class:`ForecastReport` for a garden."""

    def __init__(
        self,
        weather_service: WeatherService | None = None,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
        max_workers: int = 5,
    ) -> None:
        self.weather_service = weather_service or WeatherService()
        self._today = today
        self._now = now
        self.max_workers = max_workers

    def weather_forecast(self, garden: GardenConfig, horizon_days: int) -> GardenForecast:
        coords = garden.coordinates
        request = make_request(
            coords.latitude, coords.longitude, min(horizon_days, MAX_HORIZON_DAYS)
        )
        return self.weather_service.get_garden_forecast(request)

    @staticmethod
    def _join(name: str, future: Future[Any], default: Any) -> Any:
        try:
            return future.result()
        except Exception:
            logger.warning("%s forecast failed, using default", name, exc_info=True)
            return default

    def generate_report(self, garden: GardenConfig, horizon_days: int = 90) -> ForecastReport:
        """Run all sub-forecasts concurrently and merge them into one report."""
        today = self._today()
        jobs: dict[str, tuple[Callable[[], Any], Any]] = {
            "weather": (lambda: self.weather_forecast(garden, horizon_days), None),
            "growth": (lambda: forecast_growth(garden, horizon_days, today), GrowthForecast()),
            "risk": (lambda: assess_risks(garden, horizon_days, today), RiskAssessment()),
            "economics": (lambda: forecast_economics(horizon_days, today), EconomicForecast()),
            "recommendations": (lambda: recommend(garden, horizon_days, today), []),
        }

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="forecast"
        ) as pool:
            futures = {name: pool.submit(fn) for name, (fn, _) in jobs.items()}
            results = {name: self._join(name, futures[name], jobs[name][1]) for name in jobs}

        weather: GardenForecast | None = results["weather"]
        risks: RiskAssessment = results["risk"]
        recommendations: list[Recommendation] = results["recommendations"]

        return ForecastReport(
            metadata=ReportMetadata(
                generated_at=self._now(),
                horizon_days=horizon_days,
                region=garden.region,
                model_versions=MODEL_VERSIONS,
            ),
            weather=weather,
            growth=results["growth"],
            risks=risks,
            economics=results["economics"],
            recommendations=recommendations,
            summary=summarize(weather, risks, results["economics"], recommendations),
        )


def summarize(
    weather: GardenForecast | None,
    risks: RiskAssessment,
    economics: EconomicForecast,
    recommendations: list[Recommendation],
) -> ReportSummary:
    concerns = [alert.message for alert in weather.alerts] if weather is not None else []
    top_risks = sorted(risks.risk_factors, key=lambda r: r.score, reverse=True)[:TOP_N]
    concerns.extend(r.name for r in top_risks)

    confidences = [risks.confidence, economics.confidence]
    if weather is not None and weather.daily:
        confidences.append(statistics.mean(d.confidence for d in weather.daily))

    return ReportSummary(
        overall_outlook=OUTLOOK_BY_RISK[risks.overall_level],
        risk_level=risks.overall_level,
        major_concerns=concerns,
        recommended_actions=[r.action for r in recommendations[:TOP_N]],
        confidence=round(statistics.mean(confidences), 2),
    )
