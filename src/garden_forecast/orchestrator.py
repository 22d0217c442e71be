"""
Provider selection with fallback.

One request walks an explicit state machine::

    TRY_PREFERRED -> TRY_PRIORITY_ORDERED -> TRY_HISTORICAL -> DONE

and stops at the first provider that yields a valid forecast. For each
candidate the order is: cache -> rate limit -> fetch (bounded retry) ->
normalize -> date check -> cache store. Provider errors are logged, recorded
in ``ProviderResult.attempts`` and absorbed; only :class:`InvalidInput`
reaches the caller. Historical synthesis cannot fail, so every valid request
produces a forecast.

Usage::

    orchestrator = WeatherOrchestrator()
    result = orchestrator.get_forecast(make_request(35.994, -78.8986, horizon_days=10))
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from garden_forecast.cache import ForecastCache, cache_key
from garden_forecast.config import get_settings
from garden_forecast.datasources import HistoricalProvider, live_providers
from garden_forecast.errors import (
    AllProvidersExhausted,
    InvalidInput,
    MalformedResponse,
    ProviderError,
    QuotaExceeded,
    TransientNetworkError,
)
from garden_forecast.ratelimit import RateLimiter
from garden_forecast.schemas import (
    HISTORICAL_SOURCE,
    AttemptOutcome,
    Coordinates,
    DailyForecast,
    ForecastRequest,
    ProviderAttempt,
    ProviderResult,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from garden_forecast.config import Settings
    from garden_forecast.datasources import WeatherProvider

logger = logging.getLogger(__name__)

MAX_HORIZON_DAYS = 14


class FallbackState(StrEnum):
    TRY_PREFERRED = "try_preferred"
    TRY_PRIORITY_ORDERED = "try_priority_ordered"
    TRY_HISTORICAL = "try_historical"
    DONE = "done"


class _DeadlineReached(Exception):
    """The caller's overall deadline passed while a provider was in progress."""


def make_request(
    latitude: float | None,
    longitude: float | None,
    horizon_days: int = 10,
    *,
    preferred_provider: str | None = None,
    credentials: dict[str, str] | None = None,
) -> ForecastRequest:
    """Build a validated request from loose inputs.

    Raises:
        InvalidInput: Missing or out-of-range coordinates or horizon.
    """
    if latitude is None or longitude is None:
        msg = "latitude and longitude are required"
        raise InvalidInput(msg)
    try:
        return ForecastRequest(
            coordinates=Coordinates(latitude=latitude, longitude=longitude),
            horizon_days=horizon_days,
            preferred_provider=preferred_provider,
            credentials=credentials or {},
        )
    except ValidationError as e:
        raise InvalidInput(str(e)) from e


def validate_request(request: ForecastRequest | None) -> None:
    """Reject requests that must not reach any provider.

    Raises:
        InvalidInput: If coordinates are missing/out of range or the horizon is not 1-14.
    """
    if request is None or request.coordinates is None:
        msg = "coordinates are required"
        raise InvalidInput(msg)
    coords = request.coordinates
    if not (-90 <= coords.latitude <= 90 and -180 <= coords.longitude <= 180):
        msg = f"coordinates out of range: {coords.latitude}, {coords.longitude}"
        raise InvalidInput(msg)
    if not 1 <= request.horizon_days <= MAX_HORIZON_DAYS:
        msg = f"horizon_days must be 1-{MAX_HORIZON_DAYS}, got {request.horizon_days}"
        raise InvalidInput(msg)


def check_dates(days: list[DailyForecast], provider: str) -> None:
    """Dates must be distinct and ascending.

    Raises:
        MalformedResponse: On an empty list or out-of-order dates.
    """
    if not days:
        raise MalformedResponse(provider, "no forecast days")
    for prev, cur in zip(days, days[1:], strict=False):
        if cur.date <= prev.date:
            msg = f"dates out of order: {prev.date} then {cur.date}"
            raise MalformedResponse(provider, msg)


@dataclass
class _Run:
    """Per-request bookkeeping."""

    request: ForecastRequest
    credentials: dict[str, str]
    deadline_at: float | None
    clock: Callable[[], float]
    attempts: list[ProviderAttempt] = field(default_factory=list)

    def remaining(self) -> float | None:
        if self.deadline_at is None:
            return None
        return self.deadline_at - self.clock()

    def expired(self) -> bool:
        left = self.remaining()
        return left is not None and left <= 0

    def record(self, provider: str, outcome: AttemptOutcome, error: object = None) -> None:
        message = None if error is None else str(error)
        self.attempts.append(ProviderAttempt(provider=provider, outcome=outcome, error=message))


class WeatherOrchestrator:
    """Owns provider order, retries, the rate limiter and the cache for the process."""

    def __init__(
        self,
        providers: Iterable[WeatherProvider] | None = None,
        historical: HistoricalProvider | None = None,
        rate_limiter: RateLimiter | None = None,
        cache: ForecastCache | None = None,
        settings: Settings | None = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        today: Callable[[], date] = date.today,
        max_workers: int = 4,
    ) -> None:
        self.settings = settings or get_settings()
        if providers is None:
            providers = live_providers(include_nws=self.settings.use_nws)
        self.providers = sorted(providers, key=lambda p: p.priority)
        self.historical = historical or HistoricalProvider(today=today)
        self.rate_limiter = rate_limiter or RateLimiter(clock=clock)
        self.cache = cache or ForecastCache(clock=clock)
        self._sleep = sleep
        self._clock = clock
        self._today = today
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="provider-fetch"
        )

    def close(self) -> None:
        """Stop the fetch pool. In-flight fetches finish on their own; queued ones are dropped."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> WeatherOrchestrator:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- selection -----------------------------------------------------------

    def _provider(self, name: str) -> WeatherProvider | None:
        for provider in self.providers:
            if provider.name == name:
                return provider
        return None

    def preferred_provider(
        self, request: ForecastRequest, credentials: dict[str, str]
    ) -> WeatherProvider | None:
        name = request.preferred_provider
        if not name or name == "auto":
            return None
        provider = self._provider(name)
        if provider is None:
            logger.warning("Unknown preferred provider %r, using priority order", name)
            return None
        if not provider.is_eligible(credentials):
            logger.info("Preferred provider %s has no credentials, skipping", name)
            return None
        return provider

    def candidates(self, credentials: dict[str, str]) -> list[WeatherProvider]:
        """Eligible live providers in priority order."""
        return [p for p in self.providers if p.is_eligible(credentials)]

    # -- main entry point ----------------------------------------------------

    def get_forecast(
        self, request: ForecastRequest, deadline: float | None = None
    ) -> ProviderResult:
        """
        Produce a forecast for ``request``, falling back as needed.

        Args:
            request: Coordinates, horizon and optional preference/credentials.
            deadline: Seconds the caller is willing to wait for live providers
                (defaults to ``settings.request_deadline``). Once spent, the
                historical fallback is used.

        Raises:
            InvalidInput: Before any network call, for a malformed request.
        """
        validate_request(request)
        budget = self.settings.request_deadline if deadline is None else deadline
        run = _Run(
            request=request,
            credentials=self.settings.provider_credentials(request.credentials),
            deadline_at=None if budget is None else self._clock() + budget,
            clock=self._clock,
        )

        tried: set[str] = set()
        result: ProviderResult
        state = FallbackState.TRY_PREFERRED

        while True:
            if state is FallbackState.TRY_PREFERRED:
                preferred = self.preferred_provider(request, run.credentials)
                found: ProviderResult | None = None
                if preferred is not None:
                    tried.add(preferred.name)
                    found = self._try_provider(preferred, run)
                if found is not None:
                    result, state = found, FallbackState.DONE
                else:
                    state = FallbackState.TRY_PRIORITY_ORDERED

            elif state is FallbackState.TRY_PRIORITY_ORDERED:
                try:
                    result = self._try_priority_ordered(run, tried)
                    state = FallbackState.DONE
                except AllProvidersExhausted as e:
                    logger.info("%s, using historical averages", e)
                    state = FallbackState.TRY_HISTORICAL

            elif state is FallbackState.TRY_HISTORICAL:
                result = self._historical(run)
                state = FallbackState.DONE

            else:
                return result

    def _try_priority_ordered(self, run: _Run, tried: set[str]) -> ProviderResult:
        """First eligible provider not yet tried that yields a forecast.

        Raises:
            AllProvidersExhausted: When every candidate failed or the deadline passed.
        """
        for provider in self.candidates(run.credentials):
            if provider.name in tried:
                continue
            if run.expired():
                run.record(provider.name, AttemptOutcome.DEADLINE, "request deadline passed")
                break
            tried.add(provider.name)
            result = self._try_provider(provider, run)
            if result is not None:
                return result
        raise AllProvidersExhausted(sorted(tried))

    # -- per-provider --------------------------------------------------------

    def _try_provider(self, provider: WeatherProvider, run: _Run) -> ProviderResult | None:
        """One candidate: cached or fetched forecast, or ``None`` to fall through."""
        horizon = provider.clamp_horizon(run.request.horizon_days)
        key = cache_key(provider.name, run.request.coordinates, horizon, self._today())

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Cache hit: %s", key)
            run.record(provider.name, AttemptOutcome.CACHE_HIT)
            return ProviderResult(
                source=provider.name, days=cached, cached=True, attempts=list(run.attempts)
            )

        try:
            self.rate_limiter.acquire(provider.name)
            raw = self._fetch_with_retry(provider, run, horizon)
            days = provider.normalize(raw)[:horizon]
            check_dates(days, provider.name)
        except QuotaExceeded as e:
            logger.warning("Skipping %s: %s", provider.name, e)
            run.record(provider.name, AttemptOutcome.QUOTA_EXCEEDED, e)
            return None
        except TransientNetworkError as e:
            logger.warning("Skipping %s after retries: %s", provider.name, e)
            run.record(provider.name, AttemptOutcome.TRANSIENT_ERROR, e)
            return None
        except MalformedResponse as e:
            logger.warning("Skipping %s, bad response: %s", provider.name, e)
            run.record(provider.name, AttemptOutcome.MALFORMED, e)
            return None
        except ProviderError as e:
            logger.warning("Skipping %s: %s", provider.name, e)
            run.record(provider.name, AttemptOutcome.FAILED, e)
            return None
        except _DeadlineReached:
            logger.warning("Request deadline passed while waiting on %s", provider.name)
            run.record(provider.name, AttemptOutcome.DEADLINE, "request deadline passed")
            return None
        except Exception as e:
            logger.warning("Skipping %s, unexpected error", provider.name, exc_info=True)
            run.record(provider.name, AttemptOutcome.FAILED, repr(e))
            return None

        self.cache.set(key, days, ttl=self.settings.cache_ttl)
        run.record(provider.name, AttemptOutcome.SUCCESS)
        return ProviderResult(source=provider.name, days=days, attempts=list(run.attempts))

    def _fetch_with_retry(
        self, provider: WeatherProvider, run: _Run, horizon: int
    ) -> dict[str, Any]:
        """Fetch on a worker thread, retrying transient failures with exponential backoff."""
        max_attempts = max(1, self.settings.retry_attempts)
        credential = run.credentials.get(provider.name)

        attempt = 0
        while True:
            attempt += 1
            timeout = self.settings.attempt_timeout
            left = run.remaining()
            if left is not None:
                if left <= 0:
                    raise _DeadlineReached
                timeout = min(timeout, left)

            logger.debug("Fetching %s (attempt %d/%d)", provider.name, attempt, max_attempts)
            future = self._executor.submit(
                provider.fetch, run.request.coordinates, horizon, credential, timeout=timeout
            )
            try:
                result: dict[str, Any] = future.result(timeout=timeout)
                return result
            except TimeoutError:
                # The worker may still be running; its result is discarded
                future.cancel()
                error = TransientNetworkError(provider.name, f"no response within {timeout:.1f}s")
            except TransientNetworkError as e:
                error = e

            if attempt >= max_attempts:
                raise error

            delay = self.settings.retry_backoff * 2 ** (attempt - 1)
            left = run.remaining()
            if left is not None and delay >= left:
                raise _DeadlineReached
            logger.debug("Retrying %s in %.1fs: %s", provider.name, delay, error)
            self._sleep(delay)

    def _historical(self, run: _Run) -> ProviderResult:
        horizon = run.request.horizon_days
        key = cache_key(self.historical.name, run.request.coordinates, horizon, self._today())
        cached = self.cache.get(key)
        if cached is not None:
            run.record(self.historical.name, AttemptOutcome.CACHE_HIT)
            return ProviderResult(
                source=HISTORICAL_SOURCE,
                days=cached,
                cached=True,
                fallback=True,
                attempts=list(run.attempts),
            )

        days = self.historical.forecast(horizon)
        # Depends only on the date
        self.cache.set(key, days, ttl=None)
        run.record(self.historical.name, AttemptOutcome.SUCCESS)
        return ProviderResult(
            source=HISTORICAL_SOURCE, days=days, fallback=True, attempts=list(run.attempts)
        )
