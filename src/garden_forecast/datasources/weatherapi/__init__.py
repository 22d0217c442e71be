"""WeatherAPI.com data source (API key required).

Public API:
  - forecast: fetch_forecast, normalize_forecast, WeatherAPIProvider
  - client: API URL, horizon limit
"""

from garden_forecast.datasources.weatherapi.client import WEATHERAPI_FORECAST
from garden_forecast.datasources.weatherapi.forecast import (
    WeatherAPIProvider,
    fetch_forecast,
    normalize_forecast,
)

__all__ = [
    "WEATHERAPI_FORECAST",
    "WeatherAPIProvider",
    "fetch_forecast",
    "normalize_forecast",
]
