"""Exception taxonomy for provider access and request validation.

Provider-level errors (everything under ``ProviderError``) are absorbed by the
orchestrator, which decides per class whether to retry or skip. Only
``InvalidInput`` is allowed to reach the caller.
"""

from __future__ import annotations


class GardenForecastError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInput(GardenForecastError, ValueError):
    """Missing or out-of-range coordinates/horizon. Surfaced to the caller."""


class ProviderError(GardenForecastError):
    """A weather provider could not produce a forecast. Skip the provider."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class QuotaExceeded(ProviderError):
    """Request denied by the local rate limiter or upstream HTTP 429. Never retried."""

    def __init__(self, provider: str, retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        detail = "quota exceeded"
        if retry_after is not None:
            detail += f", resets in {retry_after:.0f}s"
        super().__init__(provider, detail)


class TransientNetworkError(ProviderError):
    """Timeout, connection reset or 5xx. Retried with backoff, then skipped."""


class MalformedResponse(ProviderError):
    """Response could not be parsed or violates the daily-forecast invariants."""


class AllProvidersExhausted(GardenForecastError):
    """Every live provider failed.

    Raised and caught inside the orchestrator, which falls back to historical averages.
    """

    def __init__(self, tried: list[str]) -> None:
        self.tried = tried
        names = ", ".join(tried) or "none eligible"
        super().__init__(f"All live providers exhausted (tried: {names})")
