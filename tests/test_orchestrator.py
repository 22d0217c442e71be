"""Tests for provider selection, fallback, retries, caching and deadlines."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from garden_forecast.datasources.base import WeatherProvider
from garden_forecast.errors import (
    AllProvidersExhausted,
    InvalidInput,
    MalformedResponse,
    ProviderError,
    QuotaExceeded,
    TransientNetworkError,
)
from garden_forecast.orchestrator import (
    FallbackState,
    WeatherOrchestrator,
    check_dates,
    make_request,
    validate_request,
)
from garden_forecast.ratelimit import QuotaPolicy, RateLimiter
from garden_forecast.schemas import (
    HISTORICAL_SOURCE,
    AttemptOutcome,
    Coordinates,
    DailyForecast,
    ForecastRequest,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from garden_forecast.config import Settings

TODAY = date(2026, 6, 1)
DURHAM = (35.994, -78.8986)


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


class FakeProvider(WeatherProvider):
    """Scripted provider: each fetch consumes the next outcome (exception or None for success)."""

    def __init__(
        self,
        name: str,
        priority: int,
        *,
        outcomes: list[BaseException | None] | None = None,
        max_days: int = 14,
        requires_key: bool = False,
        payload: dict[str, Any] | None = None,
        block: threading.Event | None = None,
    ) -> None:
        self.name = name  # type: ignore[misc]
        self.priority = priority  # type: ignore[misc]
        self.max_days = max_days  # type: ignore[misc]
        self.requires_key = requires_key  # type: ignore[misc]
        self.outcomes = list(outcomes or [])
        self.payload = payload
        self.block = block
        self.calls: list[dict[str, Any]] = []
        self._lock = threading.Lock()

    def fetch(
        self,
        coordinates: Coordinates,
        horizon_days: int,
        credential: str | None = None,
        *,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        with self._lock:
            self.calls.append(
                {"horizon_days": horizon_days, "credential": credential, "timeout": timeout}
            )
            outcome = self.outcomes.pop(0) if self.outcomes else None
        if self.block is not None:
            self.block.wait(5)
        if outcome is not None:
            raise outcome
        if self.payload is not None:
            return self.payload
        return {"start": TODAY.isoformat(), "days": horizon_days}

    def parse(self, raw: dict[str, Any]) -> list[DailyForecast]:
        start = date.fromisoformat(raw["start"])
        return [
            DailyForecast(
                date=start + timedelta(days=i),
                temp_high=80,
                temp_low=60,
                temp_avg=70,
                source_provider=self.name,
            )
            for i in range(raw["days"])
        ]


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def build(
    settings: Settings, sleeps: list[float], clock: FakeClock
) -> Iterator[Any]:
    created: list[WeatherOrchestrator] = []

    def sleep(seconds: float) -> None:
        sleeps.append(seconds)
        clock.now += seconds

    def _build(providers: list[WeatherProvider], **kwargs: Any) -> WeatherOrchestrator:
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("clock", clock)
        orchestrator = WeatherOrchestrator(
            providers=providers, sleep=sleep, today=lambda: TODAY, **kwargs
        )
        created.append(orchestrator)
        return orchestrator

    yield _build
    for orchestrator in created:
        orchestrator.close()


def _outcomes(result: Any) -> list[tuple[str, AttemptOutcome]]:
    return [(a.provider, a.outcome) for a in result.attempts]


class TestMakeRequest:
    """Input validation happens before any provider is touched."""

    def test_valid(self) -> None:
        request = make_request(*DURHAM, 10)
        assert request.coordinates.latitude == 35.994
        assert request.horizon_days == 10

    def test_missing_coordinates(self) -> None:
        with pytest.raises(InvalidInput):
            make_request(None, -78.8986)

    @pytest.mark.parametrize(("lat", "lon"), [(91, 0), (-91, 0), (0, 181), (0, -181)])
    def test_out_of_range_coordinates(self, lat: float, lon: float) -> None:
        with pytest.raises(InvalidInput):
            make_request(lat, lon)

    @pytest.mark.parametrize("horizon", [0, -1, 15, 90])
    def test_out_of_range_horizon(self, horizon: int) -> None:
        with pytest.raises(InvalidInput):
            make_request(*DURHAM, horizon)

    def test_validate_request_none(self) -> None:
        with pytest.raises(InvalidInput):
            validate_request(None)


class TestCheckDates:
    def test_empty(self) -> None:
        with pytest.raises(MalformedResponse):
            check_dates([], "x")

    def test_out_of_order(self) -> None:
        provider = FakeProvider("x", 1)
        days = provider.parse({"start": TODAY.isoformat(), "days": 3})
        with pytest.raises(MalformedResponse):
            check_dates([days[1], days[0], days[2]], "x")
        with pytest.raises(MalformedResponse):
            check_dates([days[0], days[0]], "x")


class TestPriorityOrder:
    """The first eligible provider that succeeds wins."""

    def test_first_provider_wins(self, build: Any) -> None:
        a, b = FakeProvider("a", 1), FakeProvider("b", 2)
        result = build([b, a]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "a"
        assert len(result.days) == 5
        assert not result.fallback
        assert len(a.calls) == 1
        assert b.calls == []
        assert _outcomes(result) == [("a", AttemptOutcome.SUCCESS)]

    def test_horizon_clamped_to_provider_max(self, build: Any) -> None:
        a = FakeProvider("a", 1, max_days=7)
        result = build([a]).get_forecast(make_request(*DURHAM, 10))

        assert a.calls[0]["horizon_days"] == 7
        assert len(result.days) == 7

    def test_extra_days_are_truncated(self, build: Any) -> None:
        a = FakeProvider("a", 1, payload={"start": TODAY.isoformat(), "days": 14})
        result = build([a]).get_forecast(make_request(*DURHAM, 3))
        assert [d.date for d in result.days] == [TODAY + timedelta(days=i) for i in range(3)]

    def test_keyed_provider_skipped_without_credentials(self, build: Any) -> None:
        keyed = FakeProvider("keyed", 1, requires_key=True)
        free = FakeProvider("free", 2)
        result = build([keyed, free]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "free"
        assert keyed.calls == []

    def test_request_credentials_enable_provider(self, build: Any) -> None:
        keyed = FakeProvider("keyed", 1, requires_key=True)
        request = make_request(*DURHAM, 5, credentials={"keyed": "secret"})
        result = build([keyed]).get_forecast(request)

        assert result.source == "keyed"
        assert keyed.calls[0]["credential"] == "secret"

    def test_configured_credentials_enable_provider(
        self, build: Any, settings: Settings
    ) -> None:
        keyed = FakeProvider("weatherapi", 1, requires_key=True)
        configured = settings.model_copy(update={"weatherapi_key": "from-env"})
        result = build([keyed], settings=configured).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "weatherapi"
        assert keyed.calls[0]["credential"] == "from-env"


class TestFallThrough:
    """Each error class is absorbed and the next provider is tried."""

    def test_local_quota_skips_without_calling(self, build: Any, clock: FakeClock) -> None:
        a, b = FakeProvider("a", 1), FakeProvider("b", 2)
        policies = {"a": QuotaPolicy(limit=0), "b": QuotaPolicy(limit=None)}
        limiter = RateLimiter(policies, clock=clock)
        result = build([a, b], rate_limiter=limiter).get_forecast(make_request(*DURHAM, 10))

        assert result.source == "b"
        assert a.calls == []
        assert _outcomes(result) == [
            ("a", AttemptOutcome.QUOTA_EXCEEDED),
            ("b", AttemptOutcome.SUCCESS),
        ]

    def test_upstream_429_is_not_retried(self, build: Any, sleeps: list[float]) -> None:
        a = FakeProvider("a", 1, outcomes=[QuotaExceeded("a", retry_after=60)])
        b = FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "b"
        assert len(a.calls) == 1
        assert sleeps == []

    def test_malformed_is_not_retried(self, build: Any) -> None:
        a = FakeProvider("a", 1, payload={"unexpected": True})
        b = FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "b"
        assert len(a.calls) == 1
        assert _outcomes(result)[0] == ("a", AttemptOutcome.MALFORMED)

    def test_out_of_order_dates_are_malformed(self, build: Any) -> None:
        class Backwards(FakeProvider):
            def parse(self, raw: dict[str, Any]) -> list[DailyForecast]:
                return list(reversed(super().parse(raw)))

        a, b = Backwards("a", 1), FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "b"
        assert _outcomes(result)[0] == ("a", AttemptOutcome.MALFORMED)

    def test_client_error_is_not_retried(self, build: Any) -> None:
        a = FakeProvider("a", 1, outcomes=[ProviderError("a", "HTTP 401")])
        b = FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "b"
        assert len(a.calls) == 1
        assert _outcomes(result)[0] == ("a", AttemptOutcome.FAILED)

    def test_unexpected_exception_is_absorbed(self, build: Any) -> None:
        a = FakeProvider("a", 1, outcomes=[RuntimeError("boom")])
        b = FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "b"
        assert "boom" in (result.attempts[0].error or "")


class TestRetry:
    """Only transient failures are retried, with exponential backoff."""

    def test_transient_then_success(
        self, build: Any, settings: Settings, sleeps: list[float]
    ) -> None:
        a = FakeProvider(
            "a",
            1,
            outcomes=[TransientNetworkError("a", "reset"), TransientNetworkError("a", "503")],
        )
        configured = settings.model_copy(update={"retry_backoff": 1.0})
        result = build([a], settings=configured).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "a"
        assert len(a.calls) == 3
        assert sleeps == [1.0, 2.0]

    def test_gives_up_after_max_attempts(self, build: Any) -> None:
        a = FakeProvider("a", 1, outcomes=[TransientNetworkError("a", "503")] * 5)
        b = FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5))

        assert result.source == "b"
        assert len(a.calls) == 3
        assert _outcomes(result)[0] == ("a", AttemptOutcome.TRANSIENT_ERROR)

    def test_attempt_timeout_passed_to_fetch(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        build([a]).get_forecast(make_request(*DURHAM, 5))
        assert a.calls[0]["timeout"] == 10.0

    def test_hung_fetch_times_out(self, settings: Settings) -> None:
        release = threading.Event()
        hung = FakeProvider("hung", 1, block=release)
        b = FakeProvider("b", 2)
        configured = settings.model_copy(update={"attempt_timeout": 0.05, "retry_attempts": 1})
        orchestrator = WeatherOrchestrator(
            providers=[hung, b], settings=configured, today=lambda: TODAY
        )
        try:
            result = orchestrator.get_forecast(make_request(*DURHAM, 5))
        finally:
            release.set()
            orchestrator.close()

        assert result.source == "b"
        assert _outcomes(result)[0] == ("hung", AttemptOutcome.TRANSIENT_ERROR)


class TestHistoricalFallback:
    """Total failure still produces a forecast of the requested length."""

    def test_all_providers_fail(self, build: Any) -> None:
        a = FakeProvider("a", 1, outcomes=[TransientNetworkError("a", "down")] * 3)
        b = FakeProvider("b", 2, outcomes=[ProviderError("b", "HTTP 403")])
        result = build([a, b]).get_forecast(make_request(*DURHAM, 10))

        assert result.source == HISTORICAL_SOURCE
        assert result.fallback
        assert len(result.days) == 10
        assert [d.date for d in result.days] == [TODAY + timedelta(days=i) for i in range(10)]
        assert all(d.confidence == 0.6 for d in result.days)
        assert _outcomes(result)[-1] == ("historical", AttemptOutcome.SUCCESS)

    def test_no_eligible_providers(self, build: Any) -> None:
        keyed = FakeProvider("keyed", 1, requires_key=True)
        result = build([keyed]).get_forecast(make_request(*DURHAM, 14))

        assert result.fallback
        assert len(result.days) == 14
        assert keyed.calls == []

    def test_no_providers_at_all(self, build: Any) -> None:
        result = build([]).get_forecast(make_request(*DURHAM, 1))
        assert result.source == HISTORICAL_SOURCE
        assert len(result.days) == 1

    def test_exhaustion_logged_with_tried_providers(
        self, build: Any, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.set_level(logging.INFO, logger="garden_forecast.orchestrator")
        b = FakeProvider("b", 2, outcomes=[MalformedResponse("b", "no periods")])
        a = FakeProvider("a", 1, outcomes=[ProviderError("a", "HTTP 403")])
        build([a, b]).get_forecast(make_request(*DURHAM, 3))

        assert "All live providers exhausted (tried: a, b)" in caplog.text

    def test_exhausted_error_message(self) -> None:
        assert AllProvidersExhausted(["nws"]).tried == ["nws"]
        assert "tried: none eligible" in str(AllProvidersExhausted([]))


class TestPreferredProvider:
    def test_preferred_tried_first(self, build: Any) -> None:
        a, b = FakeProvider("a", 1), FakeProvider("b", 2)
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5, preferred_provider="b"))

        assert result.source == "b"
        assert a.calls == []

    def test_failed_preferred_not_retried_in_priority_pass(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        b = FakeProvider("b", 2, outcomes=[ProviderError("b", "HTTP 500")])
        result = build([a, b]).get_forecast(make_request(*DURHAM, 5, preferred_provider="b"))

        assert result.source == "a"
        assert len(b.calls) == 1
        assert _outcomes(result) == [("b", AttemptOutcome.FAILED), ("a", AttemptOutcome.SUCCESS)]

    @pytest.mark.parametrize("preferred", ["auto", "unknown", None])
    def test_auto_and_unknown_use_priority(self, build: Any, preferred: str | None) -> None:
        a, b = FakeProvider("a", 1), FakeProvider("b", 2)
        result = build([a, b]).get_forecast(
            make_request(*DURHAM, 5, preferred_provider=preferred)
        )
        assert result.source == "a"

    def test_preferred_without_credentials_is_skipped(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        keyed = FakeProvider("keyed", 2, requires_key=True)
        result = build([a, keyed]).get_forecast(
            make_request(*DURHAM, 5, preferred_provider="keyed")
        )
        assert result.source == "a"
        assert keyed.calls == []


class TestCaching:
    """Repeated requests within the TTL are served from memory."""

    def test_second_request_hits_cache(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        orchestrator = build([a])
        first = orchestrator.get_forecast(make_request(*DURHAM, 5))
        second = orchestrator.get_forecast(make_request(*DURHAM, 5))

        assert len(a.calls) == 1
        assert not first.cached
        assert second.cached
        assert second.days == first.days
        assert _outcomes(second) == [("a", AttemptOutcome.CACHE_HIT)]

    def test_different_horizon_misses_cache(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        orchestrator = build([a])
        orchestrator.get_forecast(make_request(*DURHAM, 5))
        orchestrator.get_forecast(make_request(*DURHAM, 6))
        assert len(a.calls) == 2

    def test_entry_expires_after_ttl(self, build: Any, clock: FakeClock) -> None:
        a = FakeProvider("a", 1)
        orchestrator = build([a])
        orchestrator.get_forecast(make_request(*DURHAM, 5))
        clock.now += 3600
        orchestrator.get_forecast(make_request(*DURHAM, 5))
        assert len(a.calls) == 2

    def test_historical_cached_for_session(self, build: Any, clock: FakeClock) -> None:
        orchestrator = build([])
        orchestrator.get_forecast(make_request(*DURHAM, 5))
        clock.now += 10 * 3600
        result = orchestrator.get_forecast(make_request(*DURHAM, 5))
        assert result.cached
        assert result.fallback

    def test_failures_are_not_cached(self, build: Any) -> None:
        a = FakeProvider("a", 1, outcomes=[ProviderError("a", "HTTP 500")])
        orchestrator = build([a])
        assert orchestrator.get_forecast(make_request(*DURHAM, 5)).fallback
        assert orchestrator.get_forecast(make_request(*DURHAM, 5)).source == "a"


class TestDeadline:
    def test_spent_deadline_goes_straight_to_historical(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        result = build([a]).get_forecast(make_request(*DURHAM, 5), deadline=0)

        assert result.fallback
        assert a.calls == []
        assert _outcomes(result)[0] == ("a", AttemptOutcome.DEADLINE)

    def test_backoff_past_deadline_abandons_provider(
        self, build: Any, settings: Settings, clock: FakeClock
    ) -> None:
        a = FakeProvider("a", 1, outcomes=[TransientNetworkError("a", "503")] * 3)
        b = FakeProvider("b", 2)
        configured = settings.model_copy(update={"retry_backoff": 1.0})
        result = build([a, b], settings=configured).get_forecast(
            make_request(*DURHAM, 5), deadline=1.5
        )

        # First retry waits 1s; the second would need 2s with only 0.5s left
        assert len(a.calls) == 2
        assert _outcomes(result)[0] == ("a", AttemptOutcome.DEADLINE)
        assert result.source == "b"

    def test_fetch_timeout_bounded_by_deadline(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        build([a]).get_forecast(make_request(*DURHAM, 5), deadline=2.0)
        assert a.calls[0]["timeout"] == 2.0


class TestInvalidInput:
    def test_rejected_before_any_provider_call(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        bad = ForecastRequest.model_construct(
            coordinates=Coordinates.model_construct(latitude=95.0, longitude=0.0),
            horizon_days=10,
            preferred_provider=None,
            credentials={},
        )
        with pytest.raises(InvalidInput):
            build([a]).get_forecast(bad)
        assert a.calls == []

    def test_bad_horizon(self, build: Any) -> None:
        bad = ForecastRequest.model_construct(
            coordinates=Coordinates(latitude=35.994, longitude=-78.8986),
            horizon_days=0,
            preferred_provider=None,
            credentials={},
        )
        with pytest.raises(InvalidInput):
            build([]).get_forecast(bad)


class TestDeterminism:
    def test_same_inputs_same_forecast(self, build: Any) -> None:
        first = build([FakeProvider("a", 1)]).get_forecast(make_request(*DURHAM, 7))
        second = build([FakeProvider("a", 1)]).get_forecast(make_request(*DURHAM, 7))
        assert first.days == second.days
        assert first.source == second.source

    def test_concurrent_requests(self, build: Any) -> None:
        a = FakeProvider("a", 1)
        orchestrator = build([a])
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(
                pool.map(
                    lambda h: orchestrator.get_forecast(make_request(*DURHAM, h)), range(1, 9)
                )
            )
        assert [len(r.days) for r in results] == list(range(1, 9))
        assert all(r.source == "a" for r in results)


class TestFallbackState:
    def test_states(self) -> None:
        assert [s.value for s in FallbackState] == [
            "try_preferred",
            "try_priority_ordered",
            "try_historical",
            "done",
        ]
