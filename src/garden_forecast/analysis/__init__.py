"""Derived agricultural metrics, enrichment and summaries.

Dependency rule: analysis/ imports schema models only.
It never fetches data, touches the cache, or knows which provider was used.

Modules:
  - agronomy: single-day calculators (GDD, heat index, wind chill, risk classes)
  - enrichment: DailyForecast -> EnrichedDailyForecast
  - summary: enriched days -> summary block, weekly/monthly rollups,
    alerts, extreme weather events and simulation factors
"""

from garden_forecast.analysis.enrichment import enrich_day, enrich_forecast
from garden_forecast.analysis.summary import (
    extreme_weather_events,
    forecast_summary,
    generate_alerts,
    monthly_summary,
    simulation_factors,
    weekly_summaries,
)

__all__ = [
    "enrich_day",
    "enrich_forecast",
    "extreme_weather_events",
    "forecast_summary",
    "generate_alerts",
    "monthly_summary",
    "simulation_factors",
    "weekly_summaries",
]
