"""
HTTP API serving stored or freshly computed garden forecasts.

``GET /forecast?location=&coordinates=&days=&refresh=`` always answers 200
with a usable ``data`` payload: a fresh stored record, a newly computed
forecast, or (when everything fails) a historical-average forecast flagged
``fallback: true``. Only malformed coordinates or horizons get a 400.

Run locally::

    uvicorn --factory garden_forecast.api:create_app --port 8000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from garden_forecast import __version__
from garden_forecast.config import get_settings
from garden_forecast.errors import InvalidInput
from garden_forecast.orchestrator import make_request
from garden_forecast.pipeline import WeatherService
from garden_forecast.reference.locations import find_location
from garden_forecast.schemas import Coordinates
from garden_forecast.store import ForecastStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from garden_forecast.config import Settings
    from garden_forecast.schemas import ForecastRequest

logger = logging.getLogger(__name__)


def forecast_payload(forecast_json: dict[str, Any], timestamp: str) -> dict[str, Any]:
    """Stored/returned record: the forecast plus generation metadata."""
    return {**forecast_json, "timestamp": timestamp, "fromCache": False}


def resolve_request(
    location: str, coordinates: str | None, days: int, settings: Settings
) -> ForecastRequest:
    """Coordinates from the query, else the known location, else the configured default.

    Raises:
        InvalidInput: For malformed coordinates or an out-of-range horizon.
    """
    if coordinates:
        coords = Coordinates.parse(coordinates)
    elif (known := find_location(location)) is not None:
        coords = known.coordinates
    else:
        coords = Coordinates(latitude=settings.lat, longitude=settings.lon)
    return make_request(coords.latitude, coords.longitude, days)


def store_key(
    location: str | None, coordinates: str | None, request: ForecastRequest, settings: Settings
) -> str:
    """Explicit coordinates get their own record (``"47.60,-122.30"``); otherwise the location."""
    if coordinates:
        lat, lon = request.coordinates.rounded()
        return f"{lat:.2f},{lon:.2f}"
    return location or settings.location


def record_matches(meta: dict[str, Any], request: ForecastRequest) -> bool:
    """A stored record answers the request only for the same point and horizon."""
    if meta.get("horizon_days") != request.horizon_days:
        return False
    lat, lon = meta.get("latitude"), meta.get("longitude")
    if not isinstance(lat, int | float) or not isinstance(lon, int | float):
        return False
    return (round(lat, 2), round(lon, 2)) == request.coordinates.rounded()


def create_app(
    service: WeatherService | None = None,
    store: ForecastStore | None = None,
    settings: Settings | None = None,
    now: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> FastAPI:
    settings = settings or get_settings()
    owns_service = service is None
    service = service or WeatherService()
    store = store or ForecastStore(settings.data_dir)
    max_age = timedelta(hours=settings.store_max_age_hours)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        if owns_service:
            service.close()

    app = FastAPI(
        title=settings.app_name, version=__version__, debug=settings.debug, lifespan=lifespan
    )

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "version": __version__}

    @app.get("/forecast")
    def forecast(
        location: str | None = Query(None, description="Store key, e.g. a ZIP code"),
        coordinates: str | None = Query(None, description="'lat,lon' in decimal degrees"),
        days: int = Query(10, description="Horizon in days (1-14)"),
        refresh: bool = Query(False, description="Ignore the stored record"),
    ) -> Any:
        """Forecast for a location, served from the store while fresh."""
        timestamp = now().isoformat()

        try:
            request = resolve_request(location or settings.location, coordinates, days, settings)
        except InvalidInput as e:
            return JSONResponse(
                status_code=400,
                content={"success": False, "error": str(e), "timestamp": timestamp},
            )
        key = store_key(location, coordinates, request, settings)

        if not refresh and store.is_fresh(key, max_age):
            envelope = store.read_raw(key) or {}
            meta = envelope.get("meta", {})
            if record_matches(meta, request):
                logger.debug("Serving stored forecast for %s", key)
                return {
                    "success": True,
                    "data": envelope.get("data"),
                    "cached": True,
                    "timestamp": meta.get("fetched_at", timestamp),
                }

        try:
            result = service.get_garden_forecast(request)
        except Exception as e:
            logger.exception("Forecast failed for %s, serving historical fallback", key)
            fallback = service.fallback_forecast(request)
            return {
                "success": False,
                "error": str(e),
                "data": forecast_payload(fallback.model_dump(mode="json"), timestamp),
                "fallback": True,
                "timestamp": timestamp,
            }

        data = forecast_payload(result.model_dump(mode="json"), timestamp)
        try:
            store.write(
                key,
                data,
                source=result.source,
                valid_until=now() + max_age,
                horizon_days=request.horizon_days,
                latitude=request.coordinates.latitude,
                longitude=request.coordinates.longitude,
            )
        except OSError:
            logger.warning("Could not store forecast for %s", key, exc_info=True)

        return {"success": True, "data": data, "cached": False, "timestamp": timestamp}

    return app
