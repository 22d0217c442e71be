"""
Risk assessment across weather, plant and economic categories.

Weather risks come from the climatological normals over the horizon rather
than from a live forecast, so they can be computed for horizons far beyond
what any provider covers. The overall level is the mean expected severity
(probability x severity) of all factors::

    < 1.5 low,  < 2.5 moderate,  < 3.5 high,  else critical
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from garden_forecast.engine.models import (
    MitigationStrategy,
    RiskAssessment,
    RiskFactor,
    RiskLevel,
    RiskType,
)
from garden_forecast.reference.climate import normal_for_month

if TYPE_CHECKING:
    from garden_forecast.engine.models import GardenConfig

RISK_CONFIDENCE = 0.65

# Months whose normal low is at or below this can still frost on a cold night
FROST_PRONE_LOW_F = 40
HEAT_PRONE_HIGH_F = 87
DRY_MONTH_PRECIP_IN = 3.3

_LEVELS = (
    (1.5, RiskLevel.LOW),
    (2.5, RiskLevel.MODERATE),
    (3.5, RiskLevel.HIGH),
)

PLANT_RISKS: dict[str, list[RiskFactor]] = {
    "tomatoes": [
        RiskFactor(
            risk_type=RiskType.DISEASE,
            name="Tomato Late Blight",
            probability=0.4,
            severity=5,
            timeframe="next_60_days",
            impact="Potential total crop loss for tomatoes",
            mitigation=["Resistant varieties", "Fungicide application", "Improved air circulation"],
        ),
        RiskFactor(
            risk_type=RiskType.PEST,
            name="Tomato Hornworm",
            probability=0.3,
            severity=3,
            timeframe="next_60_days",
            impact="Defoliation and fruit damage",
            mitigation=["Hand picking", "Bt spray", "Encourage parasitic wasps"],
        ),
    ],
    "hot_peppers": [
        RiskFactor(
            risk_type=RiskType.PEST,
            name="Aphids",
            probability=0.35,
            severity=2,
            timeframe="next_30_days",
            impact="Stunted growth and virus transmission",
            mitigation=["Insecticidal soap", "Beneficial insects"],
        ),
    ],
    "kale": [
        RiskFactor(
            risk_type=RiskType.PEST,
            name="Cabbage Worm",
            probability=0.5,
            severity=2,
            timeframe="next_30_days",
            impact="Leaf damage reduces harvestable greens",
            mitigation=["Row covers", "Bt spray", "Hand picking"],
        ),
    ],
    "squash": [
        RiskFactor(
            risk_type=RiskType.DISEASE,
            name="Powdery Mildew",
            probability=0.5,
            severity=3,
            timeframe="next_60_days",
            impact="Reduced photosynthesis and early plant decline",
            mitigation=["Resistant varieties", "Wider spacing", "Morning watering"],
        ),
    ],
}

SUPPLY_CHAIN_RISK = RiskFactor(
    risk_type=RiskType.ECONOMIC,
    name="Supply Chain Disruption",
    probability=0.2,
    severity=3,
    timeframe="next_90_days",
    impact="Increased seed and amendment costs",
    mitigation=["Stock up on essentials", "Local suppliers", "Seed saving"],
)


def plant_risks(plant_key: str) -> list[RiskFactor]:
    return PLANT_RISKS.get(plant_key, [])


def _timeframe(horizon_days: int) -> str:
    return f"next_{horizon_days}_days"


def weather_risks(horizon_days: int, today: date) -> list[RiskFactor]:
    """Frost, heat and drought likelihood from the monthly normals over the horizon."""
    normals = [normal_for_month((today + timedelta(days=i)).month) for i in range(horizon_days)]
    if not normals:
        return []
    n = len(normals)
    frost_share = sum(1 for m in normals if m.temp_low <= FROST_PRONE_LOW_F) / n
    heat_share = sum(1 for m in normals if m.temp_high >= HEAT_PRONE_HIGH_F) / n
    dry_share = sum(1 for m in normals if m.precipitation < DRY_MONTH_PRECIP_IN) / n
    timeframe = _timeframe(horizon_days)

    risks: list[RiskFactor] = []
    if frost_share:
        risks.append(
            RiskFactor(
                risk_type=RiskType.WEATHER,
                name="Frost",
                probability=round(min(0.9, frost_share), 2),
                severity=4,
                timeframe=timeframe,
                impact="Damage to tender seedlings and early plantings",
                mitigation=["Row covers", "Delay planting", "Cold-hardy varieties"],
            )
        )
    if heat_share:
        risks.append(
            RiskFactor(
                risk_type=RiskType.WEATHER,
                name="Summer Heat Wave",
                probability=round(min(0.9, heat_share), 2),
                severity=3,
                timeframe=timeframe,
                impact="Heat stress, reduced yields, increased water needs",
                mitigation=["Shade cloth", "Increased watering", "Heat-tolerant varieties"],
            )
        )
    if dry_share:
        risks.append(
            RiskFactor(
                risk_type=RiskType.WEATHER,
                name="Dry Spell",
                probability=round(0.5 * dry_share, 2),
                severity=3,
                timeframe=timeframe,
                impact="Drought stress on shallow-rooted crops",
                mitigation=["Mulch", "Drip irrigation", "Water deeply and less often"],
            )
        )
    return risks


def garden_plant_risks(garden: GardenConfig) -> list[RiskFactor]:
    """Known risks for the crops in the garden, one entry per risk."""
    seen: set[str] = set()
    risks: list[RiskFactor] = []
    for planting in garden.plantings:
        for risk in plant_risks(planting.plant_key):
            if risk.name not in seen:
                seen.add(risk.name)
                risks.append(risk)
    return risks


def overall_risk_level(risk_factors: list[RiskFactor]) -> RiskLevel:
    if not risk_factors:
        return RiskLevel.LOW
    weighted = sum(r.score for r in risk_factors) / len(risk_factors)
    for limit, level in _LEVELS:
        if weighted < limit:
            return level
    return RiskLevel.CRITICAL


def mitigation_strategies(risk_factors: list[RiskFactor]) -> list[MitigationStrategy]:
    strategies = [
        MitigationStrategy(
            for_risk=r.name,
            strategies=r.mitigation,
            priority=round(r.score, 2),
            timeframe=r.timeframe,
        )
        for r in risk_factors
        if r.mitigation
    ]
    return sorted(strategies, key=lambda s: s.priority, reverse=True)


def assess_risks(garden: GardenConfig, horizon_days: int, today: date) -> RiskAssessment:
    factors = [
        *weather_risks(horizon_days, today),
        *garden_plant_risks(garden),
        SUPPLY_CHAIN_RISK,
    ]
    return RiskAssessment(
        overall_level=overall_risk_level(factors),
        risk_factors=factors,
        mitigation_strategies=mitigation_strategies(factors),
        confidence=RISK_CONFIDENCE,
    )
