"""
Domain models for garden forecasting.

Pydantic models for provider-normalized weather, derived agricultural metrics
and the summary blocks handed to downstream planners. These define the
canonical schema - provider adapters normalize API responses to these.

Units are imperial throughout: degrees Fahrenheit, inches, mph.
"""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from garden_forecast.errors import InvalidInput

HISTORICAL_SOURCE = "historical_average"

# =============================================================================
# Request
# =============================================================================


class Coordinates(BaseModel):
    """Geographic point in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def parse(cls, text: str) -> Coordinates:
        """Parse the ``"lat,lon"`` query-string form.

        Raises:
            InvalidInput: If the text is not two comma-separated numbers in range.
        """
        parts = [p.strip() for p in str(text).split(",")]
        if len(parts) != 2:
            msg = f"Coordinates must be 'lat,lon', got {text!r}"
            raise InvalidInput(msg)
        try:
            return cls(latitude=float(parts[0]), longitude=float(parts[1]))
        except ValueError as e:
            # pydantic.ValidationError subclasses ValueError
            msg = f"Invalid coordinates {text!r}"
            raise InvalidInput(msg) from e

    def rounded(self, places: int = 2) -> tuple[float, float]:
        return (round(self.latitude, places), round(self.longitude, places))


class ForecastRequest(BaseModel):
    """A forecast request for one location."""

    coordinates: Coordinates
    horizon_days: int = Field(default=10, ge=1, le=14)
    preferred_provider: str | None = None
    credentials: dict[str, str] = Field(default_factory=dict)


# =============================================================================
# Daily forecast
# =============================================================================


class FrostRisk(StrEnum):
    NONE = "none"
    LIGHT = "light"
    MODERATE = "moderate"
    SEVERE = "severe"


class HeatStressRisk(StrEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    EXTREME = "extreme"


class DroughtStress(StrEnum):
    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


class Suitability(StrEnum):
    POOR = "poor"
    FAIR = "fair"
    GOOD = "good"
    EXCELLENT = "excellent"


class DailyForecast(BaseModel):
    """Single day of weather, normalized across providers."""

    model_config = ConfigDict(frozen=True)

    date: date
    temp_high: float
    temp_low: float
    temp_avg: float
    humidity: float | None = None
    precipitation: float = Field(default=0.0, ge=0, description="Inches")
    precipitation_probability: float | None = Field(default=None, ge=0, le=100)
    wind_speed_mph: float | None = None
    wind_speed_text: str | None = None
    short_description: str = ""
    detailed_description: str | None = None
    confidence: float = Field(default=0.8, ge=0, le=1)
    source_provider: str

    @model_validator(mode="after")
    def _check_temperature_order(self) -> DailyForecast:
        if not (self.temp_low <= self.temp_avg <= self.temp_high):
            msg = (
                f"Expected temp_low <= temp_avg <= temp_high on {self.date}, got "
                f"{self.temp_low} / {self.temp_avg} / {self.temp_high}"
            )
            raise ValueError(msg)
        return self

    @property
    def day_label(self) -> str:
        """Weekday name used in alert messages."""
        return self.date.strftime("%A")

    @property
    def wind(self) -> float | str | None:
        """Structured wind speed when available, else the provider's free text."""
        if self.wind_speed_mph is not None:
            return self.wind_speed_mph
        return self.wind_speed_text


class PlantingConditions(BaseModel):
    soil_workable: bool
    seed_germination: bool
    transplant_safe: bool
    overall_suitability: Suitability


class EnrichedDailyForecast(DailyForecast):
    """Daily forecast plus derived agricultural metrics."""

    gdd_base50: float
    gdd_base32: float
    soil_temp_estimate: float
    heat_index: float
    wind_chill: float
    apparent_temperature: float
    frost_risk: FrostRisk
    heat_stress_risk: HeatStressRisk
    drought_stress: DroughtStress
    planting_conditions: PlantingConditions
    garden_conditions: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)


# =============================================================================
# Summaries and alerts
# =============================================================================


class AlertType(StrEnum):
    FROST = "frost"
    HEAT = "heat"
    RAIN = "rain"


class AlertSeverity(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class GardenAlert(BaseModel):
    """Derived weather alert. Not persisted independently."""

    type: AlertType
    severity: AlertSeverity
    message: str
    affected_days: list[str] = Field(default_factory=list)
    recommendation: str | None = None


class ExtremeEventType(StrEnum):
    FROST = "frost"
    EXTREME_HEAT = "extreme_heat"
    HEAVY_RAIN = "heavy_rain"


class EventSeverity(StrEnum):
    MODERATE = "moderate"
    SEVERE = "severe"


class ExtremeEvent(BaseModel):
    """A single day crossing a frost, heat or rainfall extreme."""

    type: ExtremeEventType
    date: date
    severity: EventSeverity
    value: float = Field(..., description="Low temp (F), high temp (F) or rainfall (inches)")
    impact: str


class ForecastSummary(BaseModel):
    avg_temp: float
    min_temp: float
    max_temp: float
    total_precipitation: float
    total_growing_degree_days: float
    frost_days: int
    heat_stress_days: int
    rain_days: int


class WeeklySummary(BaseModel):
    start_date: date
    end_date: date
    avg_temp_high: float
    avg_temp_low: float
    avg_humidity: float
    total_precipitation: float
    total_gdd: float
    risk_days: int
    risk_factors: list[str] = Field(default_factory=list)


class MonthlySummary(BaseModel):
    """Whole-horizon rollup."""

    avg_temp_high: float
    avg_temp_low: float
    total_precipitation: float
    total_gdd: float
    frost_days: int
    heat_stress_days: int
    ideal_planting_days: int


class RiskFlags(BaseModel):
    frost: bool = False
    heat: bool = False
    drought: bool = False
    excess_moisture: bool = False


class SimulationFactors(BaseModel):
    """Inputs for the downstream portfolio simulation (0-100 scores)."""

    temperature_stability: float = Field(..., ge=0, le=100)
    moisture_index: float = Field(..., ge=0, le=100)
    growth_potential: float = Field(..., ge=0, le=100)
    risk_factors: RiskFlags = Field(default_factory=RiskFlags)


# =============================================================================
# Orchestration results
# =============================================================================


class AttemptOutcome(StrEnum):
    SUCCESS = "success"
    CACHE_HIT = "cache_hit"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT_ERROR = "transient_error"
    MALFORMED = "malformed"
    FAILED = "failed"
    DEADLINE = "deadline"


class ProviderAttempt(BaseModel):
    provider: str
    outcome: AttemptOutcome
    error: str | None = None


class ProviderResult(BaseModel):
    """What the orchestrator produced and how it got there."""

    source: str
    days: list[DailyForecast]
    cached: bool = False
    fallback: bool = False
    attempts: list[ProviderAttempt] = Field(default_factory=list)


class GardenForecast(BaseModel):
    """Enriched forecast for one location: the primary output."""

    generated_at: datetime
    coordinates: Coordinates
    horizon_days: int
    source: str
    fallback: bool = False
    cached: bool = False
    daily: list[EnrichedDailyForecast]
    summary: ForecastSummary
    weekly: list[WeeklySummary] = Field(default_factory=list)
    monthly: MonthlySummary
    alerts: list[GardenAlert] = Field(default_factory=list)
    extreme_events: list[ExtremeEvent] = Field(default_factory=list)
    simulation_factors: SimulationFactors
    attempts: list[ProviderAttempt] = Field(default_factory=list)
