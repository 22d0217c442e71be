"""Plant growth projection: stage, harvest window and harvest calendar."""

from __future__ import annotations

from datetime import date, timedelta

from garden_forecast.engine.models import (
    GardenConfig,
    GrowthForecast,
    GrowthStage,
    HarvestCalendarEntry,
    HarvestWindow,
    PlantForecast,
    Planting,
)
from garden_forecast.engine.risk import plant_risks

HARVEST_WINDOW_DAYS = 14
BASE_SUCCESS_PROBABILITY = 0.85
GROWTH_CONFIDENCE = 0.7

# (fraction of days-to-harvest elapsed, stage reached), checked in order
_STAGE_THRESHOLDS = (
    (0.15, GrowthStage.SEEDLING),
    (0.5, GrowthStage.VEGETATIVE),
    (0.85, GrowthStage.FLOWERING),
)


def growth_stage(planting: Planting, today: date) -> GrowthStage:
    if today < planting.planted_date:
        return GrowthStage.PLANNED
    total = (planting.expected_harvest - planting.planted_date).days
    if total <= 0:
        return GrowthStage.MATURE
    elapsed = (today - planting.planted_date).days / total
    for limit, stage in _STAGE_THRESHOLDS:
        if elapsed < limit:
            return stage
    return GrowthStage.MATURE


def success_probability(planting: Planting) -> float:
    """Base success chance, reduced by the expected loss from known plant risks."""
    loss = sum(r.probability * r.severity / 5 for r in plant_risks(planting.plant_key))
    return round(max(0.0, BASE_SUCCESS_PROBABILITY * (1 - loss / 2)), 2)


def forecast_planting(planting: Planting, today: date) -> PlantForecast:
    start = planting.expected_harvest
    return PlantForecast(
        plant_key=planting.plant_key,
        plant_name=planting.plant_name,
        bed_name=planting.bed_name,
        current_stage=growth_stage(planting, today),
        harvest_window=HarvestWindow(start=start, end=start + timedelta(days=HARVEST_WINDOW_DAYS)),
        expected_yield=planting.expected_yield_lbs,
        success_probability=success_probability(planting),
        confidence=GROWTH_CONFIDENCE,
        risk_factors=[r.name for r in plant_risks(planting.plant_key)],
    )


def forecast_growth(garden: GardenConfig, horizon_days: int, today: date) -> GrowthForecast:
    """Project every planting and list harvests that open within the horizon."""
    horizon_end = today + timedelta(days=horizon_days)
    forecasts = [forecast_planting(p, today) for p in garden.plantings]

    calendar = [
        HarvestCalendarEntry(
            plant_key=f.plant_key,
            plant_name=f.plant_name,
            bed_name=f.bed_name,
            harvest_start=f.harvest_window.start,
            harvest_end=f.harvest_window.end,
            expected_yield=f.expected_yield,
            confidence=f.confidence,
        )
        for f in forecasts
        if f.harvest_window.start <= horizon_end and f.harvest_window.end >= today
    ]
    calendar.sort(key=lambda e: e.harvest_start)

    return GrowthForecast(plant_forecasts=forecasts, harvest_calendar=calendar)
