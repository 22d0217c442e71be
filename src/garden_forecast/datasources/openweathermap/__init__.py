"""OpenWeatherMap data source (API key required).

Public API:
  - forecast: fetch_forecast, normalize_three_hourly, normalize_onecall,
    OpenWeatherMapProvider
  - client: API URLs, endpoint horizon limits
"""

from garden_forecast.datasources.openweathermap.client import (
    OWM_FORECAST_API,
    OWM_ONECALL_API,
)
from garden_forecast.datasources.openweathermap.forecast import (
    OpenWeatherMapProvider,
    fetch_forecast,
    normalize_onecall,
    normalize_three_hourly,
)

__all__ = [
    "OWM_FORECAST_API",
    "OWM_ONECALL_API",
    "OpenWeatherMapProvider",
    "fetch_forecast",
    "normalize_onecall",
    "normalize_three_hourly",
]
