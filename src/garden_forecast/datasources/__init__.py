"""Weather data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants
    └── forecast.py       # fetch_*/normalize_* functions + WeatherProvider subclass

Every provider implements :class:`~garden_forecast.datasources.base.WeatherProvider`:
``fetch`` returns the raw payload, ``normalize`` maps it to ``DailyForecast``
rows. Providers never retry and never cache; the orchestrator does both.

Adding a new datasource
-----------------------
1. Create ``datasources/{name}/`` with files above.
   See ``weatherapi/`` for a minimal example, ``nws/`` for a two-step one.

2. Write fetch functions on top of the shared HTTP helper::

       from garden_forecast.services.http import get_json, session

       def fetch_forecast(lat, lon, api_key) -> dict[str, Any]:
           return get_json(session, API_URL, provider="name", params={...})

3. Subclass ``WeatherProvider`` (name, max_days, priority, requires_key,
   confidence) and register it in ``PROVIDERS`` below.

4. Add the credential to ``config.Settings`` if the provider needs a key.

5. Add tests in ``tests/test_{name}.py``.
"""

from __future__ import annotations

from garden_forecast.datasources.base import WeatherProvider
from garden_forecast.datasources.historical import HistoricalProvider
from garden_forecast.datasources.nws import NWSProvider
from garden_forecast.datasources.openweathermap import OpenWeatherMapProvider
from garden_forecast.datasources.weatherapi import WeatherAPIProvider

PROVIDERS: dict[str, type[WeatherProvider]] = {
    WeatherAPIProvider.name: WeatherAPIProvider,
    OpenWeatherMapProvider.name: OpenWeatherMapProvider,
    NWSProvider.name: NWSProvider,
    HistoricalProvider.name: HistoricalProvider,
}


def live_providers(*, include_nws: bool = True) -> list[WeatherProvider]:
    """Instantiate every network-backed provider, best first."""
    providers = [
        cls()
        for cls in PROVIDERS.values()
        if cls.live and (include_nws or cls is not NWSProvider)
    ]
    return sorted(providers, key=lambda p: p.priority)


__all__ = [
    "PROVIDERS",
    "HistoricalProvider",
    "NWSProvider",
    "OpenWeatherMapProvider",
    "WeatherAPIProvider",
    "WeatherProvider",
    "live_providers",
]
