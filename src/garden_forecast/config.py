"""Application settings, loaded from ``GARDEN_*`` environment variables or ``.env``."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="GARDEN_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "garden-forecast"
    app_env: str = "development"
    debug: bool = False

    # Default location: Durham, NC
    location: str = "27707"
    lat: float = 35.9940
    lon: float = -78.8986

    data_dir: Path = Path("data")
    api_port: int = 8000

    # Provider credentials (commercial providers only; NWS needs none)
    weatherapi_key: str = ""
    openweathermap_key: str = ""
    use_nws: bool = True

    # Provider access
    attempt_timeout: float = 10.0  # seconds, per fetch attempt
    retry_attempts: int = 3
    retry_backoff: float = 1.0  # seconds, doubled each retry
    cache_ttl: float = 3600.0  # seconds, live providers
    request_deadline: float | None = 45.0  # seconds, whole request

    store_max_age_hours: float = 6.0

    def provider_credentials(self, overrides: dict[str, str] | None = None) -> dict[str, str]:
        """Configured provider keys, with caller-supplied keys taking precedence."""
        creds = {
            name: key
            for name, key in (
                ("weatherapi", self.weatherapi_key),
                ("openweathermap", self.openweathermap_key),
            )
            if key
        }
        creds.update({k: v for k, v in (overrides or {}).items() if v})
        return creds


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()
