"""In-memory TTL cache for normalized provider results."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import date

    from garden_forecast.schemas import Coordinates

logger = logging.getLogger(__name__)

LIVE_TTL = 3600.0  # seconds


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Any
    inserted_at: float
    ttl: float | None  # None: kept for the life of the process

    def expired(self, now: float) -> bool:
        return self.ttl is not None and now - self.inserted_at >= self.ttl


def cache_key(provider: str, coordinates: Coordinates, horizon_days: int, day: date) -> str:
    """``provider:lat,lon:horizon:day`` with coordinates rounded to 0.01 degree."""
    lat, lon = coordinates.rounded(2)
    return f"{provider}:{lat:.2f},{lon:.2f}:{horizon_days}d:{day.isoformat()}"


class ForecastCache:
    """Thread-safe map of cache key -> value with per-entry expiry."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Cached value, or ``None`` when missing or expired (expired entries are evicted)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.expired(self._clock()):
                del self._entries[key]
                logger.debug("Cache expired: %s", key)
                return None
            return entry.value

    def set(self, key: str, value: Any, ttl: float | None = LIVE_TTL) -> None:
        with self._lock:
            self._entries[key] = CacheEntry(key, value, self._clock(), ttl)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None
