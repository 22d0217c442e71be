"""Prioritized garden actions for the horizon.

Three sources: weather protection (from the season's normals), harvest timing
(from planting dates) and disease prevention (from the crops' known
diseases). The list is ordered by priority, highest first, then by the start
of the timing window.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from garden_forecast.engine.models import (
    Recommendation,
    RecommendationType,
    RiskType,
    TimingWindow,
)
from garden_forecast.engine.risk import FROST_PRONE_LOW_F, HEAT_PRONE_HIGH_F, plant_risks
from garden_forecast.reference.climate import normal_for_month

if TYPE_CHECKING:
    from garden_forecast.engine.models import GardenConfig

HARVEST_LOOKAHEAD_DAYS = 14
DISEASE_SCORE_THRESHOLD = 1.5


def _window(today: date, start: int, end: int) -> TimingWindow:
    return TimingWindow(start=today + timedelta(days=start), end=today + timedelta(days=end))


def weather_recommendations(garden: GardenConfig, today: date) -> list[Recommendation]:
    if not garden.plantings:
        return []
    normal = normal_for_month(today.month)
    recs: list[Recommendation] = []
    if normal.temp_low <= FROST_PRONE_LOW_F:
        recs.append(
            Recommendation(
                type=RecommendationType.WEATHER_PROTECTION,
                priority=4,
                action="Keep row covers ready for tender seedlings",
                reason=f"Normal lows this month are {normal.temp_low:.0f}F",
                timing_window=_window(today, 0, 2),
                expected_benefit="Protect seedlings from frost damage",
            )
        )
    if normal.temp_high >= HEAT_PRONE_HIGH_F:
        recs.append(
            Recommendation(
                type=RecommendationType.WEATHER_PROTECTION,
                priority=3,
                action="Put up shade cloth and water deeply in the morning",
                reason=f"Normal highs this month are {normal.temp_high:.0f}F",
                timing_window=_window(today, 0, 7),
                expected_benefit="Reduce heat stress and blossom drop",
            )
        )
    return recs


def harvest_recommendations(
    garden: GardenConfig, horizon_days: int, today: date
) -> list[Recommendation]:
    lookahead = today + timedelta(days=min(horizon_days, HARVEST_LOOKAHEAD_DAYS))
    return [
        Recommendation(
            type=RecommendationType.HARVESTING,
            priority=5,
            action=f"Harvest {p.plant_name}" + (f" in {p.bed_name}" if p.bed_name else ""),
            reason=f"Expected harvest on {p.expected_harvest.isoformat()}",
            timing_window=TimingWindow(
                start=max(p.expected_harvest, today),
                end=p.expected_harvest + timedelta(days=HARVEST_LOOKAHEAD_DAYS),
            ),
            expected_benefit="Maximize harvest quality and yield",
        )
        for p in garden.plantings
        if today <= p.expected_harvest + timedelta(days=HARVEST_LOOKAHEAD_DAYS)
        and p.expected_harvest <= lookahead
    ]


def disease_recommendations(garden: GardenConfig, today: date) -> list[Recommendation]:
    recs: list[Recommendation] = []
    seen: set[str] = set()
    for planting in garden.plantings:
        for risk in plant_risks(planting.plant_key):
            if risk.risk_type is not RiskType.DISEASE or risk.score < DISEASE_SCORE_THRESHOLD:
                continue
            if risk.name in seen:
                continue
            seen.add(risk.name)
            recs.append(
                Recommendation(
                    type=RecommendationType.DISEASE_PREVENTION,
                    priority=3,
                    action=(
                        f"Start preventive care against {risk.name}: "
                        f"{', '.join(risk.mitigation)}"
                    ),
                    reason=risk.impact,
                    timing_window=_window(today, 7, 14),
                    expected_benefit=f"Lower the {risk.probability:.0%} chance of {risk.name}",
                )
            )
    return recs


def sort_recommendations(recs: list[Recommendation]) -> list[Recommendation]:
    return sorted(recs, key=lambda r: (-r.priority, r.timing_window.start))


def recommend(garden: GardenConfig, horizon_days: int, today: date) -> list[Recommendation]:
    return sort_recommendations(
        [
            *weather_recommendations(garden, today),
            *harvest_recommendations(garden, horizon_days, today),
            *disease_recommendations(garden, today),
        ]
    )
