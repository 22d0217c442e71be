"""Common contract for weather providers.

A provider turns (coordinates, horizon) into a raw payload with ``fetch`` and
the raw payload into canonical :class:`DailyForecast` rows with ``normalize``.
Providers hold no state between calls and never retry; the orchestrator owns
retries, rate limiting and caching.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from garden_forecast.errors import MalformedResponse

if TYPE_CHECKING:
    from garden_forecast.schemas import Coordinates, DailyForecast


class WeatherProvider(ABC):
    """One weather data source."""

    name: ClassVar[str]
    max_days: ClassVar[int]
    priority: ClassVar[int]
    requires_key: ClassVar[bool] = True
    confidence: ClassVar[float] = 0.8
    live: ClassVar[bool] = True

    @abstractmethod
    def fetch(
        self,
        coordinates: Coordinates,
        horizon_days: int,
        credential: str | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Retrieve the raw provider payload for ``horizon_days`` days."""

    @abstractmethod
    def parse(self, raw: dict[str, Any]) -> list[DailyForecast]:
        """Map the raw payload to daily forecasts. May raise KeyError/TypeError/ValueError."""

    def normalize(self, raw: dict[str, Any]) -> list[DailyForecast]:
        """Map the raw payload to daily forecasts.

        Raises:
            MalformedResponse: If the payload is missing fields or fails validation.
        """
        try:
            return self.parse(raw)
        except (KeyError, TypeError, ValueError, IndexError) as e:
            # pydantic.ValidationError subclasses ValueError
            raise MalformedResponse(self.name, f"{type(e).__name__}: {e}") from e

    def clamp_horizon(self, horizon_days: int) -> int:
        return max(1, min(horizon_days, self.max_days))

    def is_eligible(self, credentials: dict[str, str]) -> bool:
        """True if the provider can be called with the given credentials."""
        return not self.requires_key or bool(credentials.get(self.name))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, priority={self.priority})"
