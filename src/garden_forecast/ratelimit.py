"""Per-provider request quotas with fixed reset windows.

Each provider gets a counter that is created on first use and reset once the
clock passes its window end. A request past the ceiling is refused with
:class:`QuotaExceeded` before any network call is made.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from garden_forecast.errors import QuotaExceeded

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger(__name__)

HOUR = 3600.0


@dataclass(frozen=True)
class QuotaPolicy:
    """At most ``limit`` requests per ``window_seconds``. ``limit=None`` is unlimited."""

    limit: int | None
    window_seconds: float = HOUR


@dataclass
class RateLimitState:
    request_count: int
    window_reset: float


DEFAULT_POLICIES: dict[str, QuotaPolicy] = {
    "openweathermap": QuotaPolicy(limit=60),
    "weatherapi": QuotaPolicy(limit=100),
    "nws": QuotaPolicy(limit=1000),
    "historical": QuotaPolicy(limit=None),
}

UNKNOWN_PROVIDER_POLICY = QuotaPolicy(limit=10)


class RateLimiter:
    """Thread-safe quota tracker shared by every request in the process."""

    def __init__(
        self,
        policies: Mapping[str, QuotaPolicy] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policies = dict(DEFAULT_POLICIES if policies is None else policies)
        self._clock = clock
        self._state: dict[str, RateLimitState] = {}
        self._lock = threading.Lock()

    def policy(self, provider: str) -> QuotaPolicy:
        return self._policies.get(provider, UNKNOWN_PROVIDER_POLICY)

    def _current(self, provider: str, now: float) -> RateLimitState:
        """State for ``provider``, created or rolled over as needed. Caller holds the lock."""
        state = self._state.get(provider)
        if state is None or now > state.window_reset:
            state = RateLimitState(0, now + self.policy(provider).window_seconds)
            self._state[provider] = state
        return state

    def acquire(self, provider: str) -> None:
        """Count one request against ``provider``.

        Raises:
            QuotaExceeded: If the provider's ceiling is reached for this window.
        """
        policy = self.policy(provider)
        if policy.limit is None:
            return
        with self._lock:
            now = self._clock()
            state = self._current(provider, now)
            if state.request_count >= policy.limit:
                retry_after = max(0.0, state.window_reset - now)
                logger.debug("Quota exhausted for %s, resets in %.0fs", provider, retry_after)
                raise QuotaExceeded(provider, retry_after=retry_after)
            state.request_count += 1

    def remaining(self, provider: str) -> int | None:
        """Requests left in the current window (``None`` if unlimited)."""
        policy = self.policy(provider)
        if policy.limit is None:
            return None
        with self._lock:
            state = self._current(provider, self._clock())
            return policy.limit - state.request_count

    def reset(self) -> None:
        """Forget all counters."""
        with self._lock:
            self._state.clear()
