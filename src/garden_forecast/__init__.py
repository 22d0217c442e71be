"""Garden Forecast - multi-provider weather forecasts for garden planning.

Architecture::

    datasources/   Weather providers (WeatherAPI, OpenWeatherMap, NWS, historical normals)
    orchestrator   Provider fallback chain with rate limits, retries and a deadline
    analysis/      Agronomy metrics, per-day enrichment, summaries and alerts
    pipeline.py    Orchestrator result → enriched, summarized GardenForecast
    engine/        Growth, risk, economic and recommendation forecasts
    store.py       JSON records with freshness metadata
    api.py         FastAPI app serving stored or fresh forecasts
    flows/         Prefect orchestration (scheduled refresh of stored forecasts)
    services/      Shared utilities (HTTP client with timeouts and error mapping)

Data flow: datasources → orchestrator → pipeline → store → api

Extension points (see each package's docstring for step-by-step guides):
  - New weather provider:  datasources/__init__.py
  - New derived metric:    analysis/agronomy.py, wired in analysis/enrichment.py
"""

__version__ = "0.1.0"
__author__ = "Michael Howden"

from garden_forecast.config import Settings
from garden_forecast.schemas import ForecastRequest, GardenForecast

__all__ = ["ForecastRequest", "GardenForecast", "Settings", "__version__"]
