"""Per-location forecast store with freshness-aware reads.

One JSON file per location key under ``forecasts/``, wrapped in a metadata
envelope::

    {"meta": {"source": ..., "fetched_at": ..., "valid_until": ..., ...},
     "data": {...forecast, "timestamp": ..., "fromCache": false}}

The scheduled refresh writes records with a 6-hour ``valid_until``; the HTTP
endpoint serves a record as-is while it is fresh and recomputes otherwise.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

FORECASTS_DIR = "forecasts"
DEFAULT_MAX_AGE = timedelta(hours=6)

_UNSAFE_KEY_CHARS = re.compile(r"[^A-Za-z0-9_.,-]")

logger = logging.getLogger(__name__)


class ForecastStore:
    """Manages read/write of stored forecasts with TTL."""

    def __init__(
        self,
        base_dir: Path,
        now: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.base = base_dir
        self.forecasts = base_dir / FORECASTS_DIR
        self._now = now

    def path_for(self, location_key: str) -> Path:
        """Relative path of the record for ``location_key`` (e.g. ``forecasts/27707.json``)."""
        safe = _UNSAFE_KEY_CHARS.sub("_", location_key.strip()) or "default"
        return Path(FORECASTS_DIR) / f"{safe}.json"

    def read(self, location_key: str) -> dict[str, Any] | None:
        """Read the ``data`` payload, or None if no record exists."""
        envelope = self.read_raw(location_key)
        if envelope is None:
            return None
        result: dict[str, Any] = envelope.get("data", envelope)
        return result

    def read_raw(self, location_key: str) -> dict[str, Any] | None:
        """Read the full envelope (meta + data).

        A missing or unreadable record (truncated, not JSON, not an object)
        reads as None, so callers treat it like no record at all.
        """
        full = self._resolve(self.path_for(location_key))
        if not full.exists():
            return None
        try:
            with full.open() as f:
                result = json.load(f)
        except (OSError, ValueError):
            logger.warning("Ignoring unreadable forecast record %s", full, exc_info=True)
            return None
        if not isinstance(result, dict):
            logger.warning("Ignoring malformed forecast record %s", full)
            return None
        return result

    def write(
        self,
        location_key: str,
        data: Any,
        source: str,
        valid_until: datetime | None = None,
        **params: Any,
    ) -> Path:
        """Write data wrapped in a metadata envelope.

        Args:
            location_key: Store key, usually a ZIP code.
            data: JSON-serializable payload stored under ``data``.
            source: Provider that produced the forecast.
            valid_until: Expiry timestamp. None means always stale.
            **params: Extra metadata fields (coordinates, horizon, etc.).

        Returns:
            Absolute path of the written file.
        """
        full = self._resolve(self.path_for(location_key))
        full.parent.mkdir(parents=True, exist_ok=True)

        meta: dict[str, Any] = {
            "source": source,
            "fetched_at": self._now().isoformat(),
        }
        if valid_until is not None:
            meta["valid_until"] = valid_until.isoformat()
        if params:
            meta.update(params)

        envelope = {"meta": meta, "data": data}
        # Readers never see a partially written file
        fd, tmp_name = tempfile.mkstemp(dir=full.parent, prefix=f".{full.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(envelope, f, indent=2, default=str)
            os.replace(tmp_name, full)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        return full

    def _resolve(self, path: Path) -> Path:
        full = self.base / path if not path.is_absolute() else path
        try:
            full.resolve().relative_to(self.base.resolve())
        except ValueError:
            msg = f"Path escapes store base directory: {path}"
            raise ValueError(msg) from None
        return full

    def _meta(self, location_key: str) -> dict[str, Any]:
        envelope = self.read_raw(location_key)
        if envelope is None:
            return {}
        meta = envelope.get("meta")
        return meta if isinstance(meta, dict) else {}

    @staticmethod
    def _parse_time(value: Any) -> datetime | None:
        if not isinstance(value, str):
            return None
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=UTC)
        return parsed

    def age(self, location_key: str) -> timedelta | None:
        """Time since the record was written, or None if there is no record."""
        fetched_at = self._parse_time(self._meta(location_key).get("fetched_at"))
        if fetched_at is None:
            return None
        return self._now() - fetched_at

    def is_fresh(self, location_key: str, max_age: timedelta = DEFAULT_MAX_AGE) -> bool:
        """Check if a record exists, hasn't expired and is younger than ``max_age``.

        Returns False if the record is missing or unreadable, has no valid
        ``valid_until``, or either limit has passed.
        """
        valid_until = self._parse_time(self._meta(location_key).get("valid_until"))
        if valid_until is None:
            return False
        if self._now() >= valid_until:
            return False
        age = self.age(location_key)
        return age is not None and age < max_age
