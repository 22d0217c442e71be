"""Historical-average data source (no network).

Public API:
  - normals: HistoricalProvider, historical_day, historical_forecast
"""

from garden_forecast.datasources.historical.normals import (
    HistoricalProvider,
    historical_day,
    historical_forecast,
)

__all__ = [
    "HistoricalProvider",
    "historical_day",
    "historical_forecast",
]
