"""
Shared HTTP client for weather provider calls.

Provides a pre-configured ``requests.Session`` plus :func:`get_json`, which
maps transport and HTTP failures onto the provider error taxonomy in
:mod:`garden_forecast.errors`.  Retrying is owned by the orchestrator, so the
mounted adapter does not retry on its own.

Usage::

    from garden_forecast.services.http import get_json, session

    payload = get_json(session, "https://api.weather.gov/points/35.99,-78.90",
                       provider="nws")
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from garden_forecast.errors import (
    MalformedResponse,
    ProviderError,
    QuotaExceeded,
    TransientNetworkError,
)

logger = logging.getLogger(__name__)

#: No adapter-level retries. The orchestrator retries transient failures
#: with its own backoff and deadline accounting.
NO_RETRY = Retry(total=0, raise_on_status=False)

DEFAULT_TIMEOUT = 10  # seconds

USER_AGENT = "garden-forecast/0.1 (garden weather forecasting)"


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Session:
    """
    Build a ``requests.Session`` with the adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``NO_RETRY``).
        timeout: Default timeout applied to every request.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or NO_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = USER_AGENT

    # Monkey-patch send to inject a default timeout so callers don't need to
    # remember to pass ``timeout=`` every time.
    _original_send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return _original_send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s


def _retry_after(resp: requests.Response) -> float | None:
    value = resp.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def get_json(
    http: requests.Session,
    url: str,
    *,
    provider: str,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    """
    GET ``url`` and decode the JSON body.

    Raises:
        TransientNetworkError: Timeout, connection failure or 5xx status.
        QuotaExceeded: HTTP 429.
        ProviderError: Any other non-2xx status.
        MalformedResponse: Body is not valid JSON.
    """
    kwargs: dict[str, Any] = {"params": params, "headers": headers}
    if timeout is not None:
        kwargs["timeout"] = timeout
    logger.debug("GET %s (%s)", url, provider)
    try:
        resp = http.get(url, **kwargs)
    except (requests.Timeout, requests.ConnectionError) as e:
        raise TransientNetworkError(provider, f"{type(e).__name__}: {e}") from e

    if resp.status_code == 429:
        raise QuotaExceeded(provider, retry_after=_retry_after(resp))
    if resp.status_code >= 500:
        raise TransientNetworkError(provider, f"HTTP {resp.status_code} from {url}")
    if resp.status_code >= 400:
        raise ProviderError(provider, f"HTTP {resp.status_code} from {url}")

    try:
        return resp.json()
    except ValueError as e:
        # requests.JSONDecodeError subclasses ValueError
        raise MalformedResponse(provider, f"Invalid JSON from {url}") from e


#: Module-level session, import and use directly.
session: requests.Session = create_session()
