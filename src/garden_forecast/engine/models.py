"""Models for garden configuration and the combined forecast report."""

from __future__ import annotations

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from garden_forecast.reference.locations import DURHAM
from garden_forecast.schemas import Coordinates, GardenForecast

# =============================================================================
# Garden input
# =============================================================================


class Planting(BaseModel):
    """A crop in the ground (or scheduled to be)."""

    plant_key: str
    plant_name: str
    bed_name: str = ""
    planted_date: date
    expected_harvest: date
    expected_yield_lbs: float = Field(default=2.5, ge=0)


class GardenConfig(BaseModel):
    name: str = "Garden"
    region: str = DURHAM.name
    coordinates: Coordinates = Field(default_factory=lambda: DURHAM.coordinates)
    plantings: list[Planting] = Field(default_factory=list)


# =============================================================================
# Growth
# =============================================================================


class GrowthStage(StrEnum):
    PLANNED = "planned"
    SEEDLING = "seedling"
    VEGETATIVE = "vegetative"
    FLOWERING = "flowering"
    MATURE = "mature"


class HarvestWindow(BaseModel):
    start: date
    end: date


class PlantForecast(BaseModel):
    plant_key: str
    plant_name: str
    bed_name: str
    current_stage: GrowthStage
    harvest_window: HarvestWindow
    expected_yield: float
    success_probability: float = Field(..., ge=0, le=1)
    confidence: float = Field(..., ge=0, le=1)
    risk_factors: list[str] = Field(default_factory=list)


class HarvestCalendarEntry(BaseModel):
    plant_key: str
    plant_name: str
    bed_name: str
    harvest_start: date
    harvest_end: date
    expected_yield: float
    confidence: float


class GrowthForecast(BaseModel):
    plant_forecasts: list[PlantForecast] = Field(default_factory=list)
    harvest_calendar: list[HarvestCalendarEntry] = Field(default_factory=list)


# =============================================================================
# Risk
# =============================================================================


class RiskType(StrEnum):
    WEATHER = "weather"
    DISEASE = "disease"
    PEST = "pest"
    ECONOMIC = "economic"


class RiskLevel(StrEnum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


class RiskFactor(BaseModel):
    risk_type: RiskType
    name: str
    probability: float = Field(..., ge=0, le=1)
    severity: int = Field(..., ge=1, le=5)
    timeframe: str
    impact: str
    mitigation: list[str] = Field(default_factory=list)

    @property
    def score(self) -> float:
        """Expected severity: probability x severity."""
        return self.probability * self.severity


class MitigationStrategy(BaseModel):
    for_risk: str
    strategies: list[str]
    priority: float
    timeframe: str


class RiskAssessment(BaseModel):
    overall_level: RiskLevel = RiskLevel.LOW
    risk_factors: list[RiskFactor] = Field(default_factory=list)
    mitigation_strategies: list[MitigationStrategy] = Field(default_factory=list)
    confidence: float = 0.65


# =============================================================================
# Economics
# =============================================================================


class TrendPoint(BaseModel):
    date: date
    value: float
    trend: str | None = None
    seasonal_factor: float | None = None


class EconomicForecast(BaseModel):
    cost_trends: dict[str, list[TrendPoint]] = Field(default_factory=dict)
    market_values: dict[str, list[TrendPoint]] = Field(default_factory=dict)
    confidence: float = 0.6


# =============================================================================
# Recommendations and report
# =============================================================================


class RecommendationType(StrEnum):
    WEATHER_PROTECTION = "weather_protection"
    HARVESTING = "harvesting"
    DISEASE_PREVENTION = "disease_prevention"


class TimingWindow(BaseModel):
    start: date
    end: date


class Recommendation(BaseModel):
    type: RecommendationType
    priority: int = Field(..., ge=1, le=5)
    action: str
    reason: str
    timing_window: TimingWindow
    expected_benefit: str = ""


class ReportMetadata(BaseModel):
    generated_at: datetime
    horizon_days: int
    region: str
    model_versions: dict[str, str]


class ReportSummary(BaseModel):
    overall_outlook: str
    risk_level: RiskLevel
    major_concerns: list[str] = Field(default_factory=list)
    recommended_actions: list[str] = Field(default_factory=list)
    confidence: float


class ForecastReport(BaseModel):
    """Everything the planner needs for one garden over the horizon."""

    metadata: ReportMetadata
    weather: GardenForecast | None = None
    growth: GrowthForecast
    risks: RiskAssessment
    economics: EconomicForecast
    recommendations: list[Recommendation] = Field(default_factory=list)
    summary: ReportSummary
