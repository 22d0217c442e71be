"""National Weather Service data source.

Keyless 7-day day/night forecast for U.S. locations (api.weather.gov).

Public API:
  - forecast: fetch_forecast, normalize_forecast, NWSProvider
  - client: API URLs, request headers, estimation constants
"""

from garden_forecast.datasources.nws.client import NWS_API, NWS_POINTS
from garden_forecast.datasources.nws.forecast import (
    NWSProvider,
    estimate_precipitation,
    fetch_forecast,
    normalize_forecast,
)

__all__ = [
    "NWS_API",
    "NWS_POINTS",
    "NWSProvider",
    "estimate_precipitation",
    "fetch_forecast",
    "normalize_forecast",
]
