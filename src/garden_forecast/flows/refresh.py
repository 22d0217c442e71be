"""
Prefect flow that keeps stored forecasts fresh.

Every 6 hours, re-fetch and re-store the forecast for each reference
location. A failure at one location is reported and the rest carry on.

Run once:
    python -m garden_forecast.flows.refresh

Serve on the 6-hour schedule (with a Prefect server running):
    python -m garden_forecast.flows.refresh --serve
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

from prefect import flow, task

from garden_forecast.config import get_settings
from garden_forecast.orchestrator import make_request
from garden_forecast.pipeline import WeatherService
from garden_forecast.reference.locations import REFRESH_LOCATIONS, Location
from garden_forecast.store import ForecastStore

REFRESH_CRON = "0 */6 * * *"
RECORD_TTL = timedelta(hours=6)
HORIZON_DAYS = 10

store = ForecastStore(get_settings().data_dir)


@lru_cache
def get_service() -> WeatherService:
    return WeatherService()


def close_service() -> None:
    """Stop the shared service's fetch pool, if one was created."""
    if get_service.cache_info().currsize:
        get_service().close()
        get_service.cache_clear()


@task(name="refresh-location")
def refresh_location(location: Location, horizon_days: int = HORIZON_DAYS) -> dict[str, Any]:
    """Fetch and store the forecast for one location."""
    request = make_request(location.latitude, location.longitude, horizon_days)
    forecast = get_service().get_garden_forecast(request)
    now = datetime.now(UTC)

    data = {**forecast.model_dump(mode="json"), "timestamp": now.isoformat(), "fromCache": False}
    path = store.write(
        location.key,
        data,
        source=forecast.source,
        valid_until=now + RECORD_TTL,
        horizon_days=horizon_days,
        latitude=location.latitude,
        longitude=location.longitude,
    )
    print(
        f"Stored {len(forecast.daily)}-day forecast for {location.name} "
        f"from {forecast.source} at {path}"
    )
    return {
        "location": location.key,
        "success": True,
        "source": forecast.source,
        "fallback": forecast.fallback,
        "days": len(forecast.daily),
    }


@flow(name="refresh-forecasts", log_prints=True)
def refresh_forecasts(
    locations: Sequence[Location] = REFRESH_LOCATIONS,
    horizon_days: int = HORIZON_DAYS,
) -> dict[str, Any]:
    """
    Refresh stored forecasts for every location.

    Returns a per-location report; one location failing does not stop the rest.
    """
    results: list[dict[str, Any]] = []
    for location in locations:
        print(f"Refreshing forecast for {location.name} at {location.coordinates.rounded()}...")
        try:
            results.append(refresh_location(location, horizon_days))
        except Exception as e:
            print(f"Failed to refresh {location.name}: {e}")
            results.append({"location": location.key, "success": False, "error": str(e)})

    succeeded = sum(1 for r in results if r["success"])
    print(f"Refreshed {succeeded}/{len(results)} locations")
    return {
        "timestamp": datetime.now(UTC).isoformat(),
        "refreshed": succeeded,
        "failed": len(results) - succeeded,
        "results": results,
    }


def serve() -> None:
    """Serve the flow on its 6-hour schedule (blocks)."""
    refresh_forecasts.serve(name="forecast-refresh", cron=REFRESH_CRON)


if __name__ == "__main__":
    try:
        if "--serve" in sys.argv[1:]:
            serve()
        else:
            result = refresh_forecasts()
            print(f"Flow complete: {result}")
    finally:
        close_service()
