"""Roll enriched daily forecasts up into summaries, alerts and simulation inputs.

All functions take the enriched list in date order and are pure.
"""

from __future__ import annotations

import statistics
from typing import TYPE_CHECKING

from garden_forecast.schemas import (
    AlertSeverity,
    AlertType,
    DroughtStress,
    EventSeverity,
    ExtremeEvent,
    ExtremeEventType,
    ForecastSummary,
    FrostRisk,
    GardenAlert,
    HeatStressRisk,
    MonthlySummary,
    RiskFlags,
    SimulationFactors,
    Suitability,
    WeeklySummary,
)

if TYPE_CHECKING:
    from garden_forecast.schemas import EnrichedDailyForecast

WEEK_DAYS = 7
FROST_ALERT_WINDOW = 3
HEAT_ALERT_MIN_DAYS = 3  # alert when strictly more heat-stress days than this
HEAVY_RAIN_PROBABILITY = 80
RAIN_DAY_PROBABILITY = 50
WET_DAY_PROBABILITY = 30
SEVERE_FROST_LOW = 28
EXTREME_HEAT_HIGH = 95
SEVERE_HEAT_HIGH = 100
HEAVY_RAIN_INCHES = 1.0
SEVERE_RAIN_INCHES = 2.0


def _is_frost_day(day: EnrichedDailyForecast) -> bool:
    return day.frost_risk is not FrostRisk.NONE


def _is_heat_day(day: EnrichedDailyForecast) -> bool:
    return day.heat_stress_risk in (HeatStressRisk.HIGH, HeatStressRisk.EXTREME)


def _probability(day: EnrichedDailyForecast) -> float:
    return day.precipitation_probability or 0.0


def forecast_summary(days: list[EnrichedDailyForecast]) -> ForecastSummary:
    """Headline numbers for the whole horizon."""
    if not days:
        return ForecastSummary(
            avg_temp=0.0,
            min_temp=0.0,
            max_temp=0.0,
            total_precipitation=0.0,
            total_growing_degree_days=0.0,
            frost_days=0,
            heat_stress_days=0,
            rain_days=0,
        )
    return ForecastSummary(
        avg_temp=round(statistics.mean(d.temp_avg for d in days), 1),
        min_temp=min(d.temp_low for d in days),
        max_temp=max(d.temp_high for d in days),
        total_precipitation=round(sum(d.precipitation for d in days), 2),
        total_growing_degree_days=round(sum(d.gdd_base50 for d in days), 1),
        frost_days=sum(1 for d in days if _is_frost_day(d)),
        heat_stress_days=sum(1 for d in days if _is_heat_day(d)),
        rain_days=sum(1 for d in days if _probability(d) > RAIN_DAY_PROBABILITY),
    )


def _week_risk_factors(week: list[EnrichedDailyForecast]) -> list[str]:
    risks: list[str] = []
    frost_days = sum(1 for d in week if _is_frost_day(d))
    if frost_days:
        risks.append(f"{frost_days} frost risk days")
    heat_days = sum(1 for d in week if _is_heat_day(d))
    if heat_days:
        risks.append(f"{heat_days} heat stress days")
    drought_days = sum(1 for d in week if d.drought_stress is DroughtStress.HIGH)
    if drought_days:
        risks.append(f"{drought_days} drought stress days")
    return risks


def weekly_summaries(days: list[EnrichedDailyForecast]) -> list[WeeklySummary]:
    """Aggregate consecutive 7-day windows. The last window may be shorter."""
    weeks: list[WeeklySummary] = []
    for start in range(0, len(days), WEEK_DAYS):
        week = days[start : start + WEEK_DAYS]
        weeks.append(
            WeeklySummary(
                start_date=week[0].date,
                end_date=week[-1].date,
                avg_temp_high=round(statistics.mean(d.temp_high for d in week), 1),
                avg_temp_low=round(statistics.mean(d.temp_low for d in week), 1),
                avg_humidity=round(statistics.mean(d.humidity or 0.0 for d in week), 1),
                total_precipitation=round(sum(d.precipitation for d in week), 2),
                total_gdd=round(sum(d.gdd_base50 for d in week), 1),
                risk_days=sum(
                    1
                    for d in week
                    if _is_frost_day(d) or _is_heat_day(d) or d.drought_stress is DroughtStress.HIGH
                ),
                risk_factors=_week_risk_factors(week),
            )
        )
    return weeks


def monthly_summary(days: list[EnrichedDailyForecast]) -> MonthlySummary:
    """Single rollup over the full horizon."""
    if not days:
        return MonthlySummary(
            avg_temp_high=0.0,
            avg_temp_low=0.0,
            total_precipitation=0.0,
            total_gdd=0.0,
            frost_days=0,
            heat_stress_days=0,
            ideal_planting_days=0,
        )
    return MonthlySummary(
        avg_temp_high=round(statistics.mean(d.temp_high for d in days), 1),
        avg_temp_low=round(statistics.mean(d.temp_low for d in days), 1),
        total_precipitation=round(sum(d.precipitation for d in days), 2),
        total_gdd=round(sum(d.gdd_base50 for d in days), 1),
        frost_days=sum(1 for d in days if _is_frost_day(d)),
        heat_stress_days=sum(1 for d in days if _is_heat_day(d)),
        ideal_planting_days=sum(
            1
            for d in days
            if d.planting_conditions.overall_suitability is Suitability.EXCELLENT
        ),
    )


def generate_alerts(days: list[EnrichedDailyForecast]) -> list[GardenAlert]:
    """Scan the horizon for frost, sustained heat and heavy rain."""
    alerts: list[GardenAlert] = []

    early_frost = [d for d in days[:FROST_ALERT_WINDOW] if _is_frost_day(d)]
    if early_frost:
        alerts.append(
            GardenAlert(
                type=AlertType.FROST,
                severity=AlertSeverity.HIGH,
                message=f"Frost expected in next {FROST_ALERT_WINDOW} days - protect tender plants",
                affected_days=[d.day_label for d in early_frost],
                recommendation="Cover tender plants or move containers indoors",
            )
        )

    hot_days = [d for d in days if _is_heat_day(d)]
    if len(hot_days) > HEAT_ALERT_MIN_DAYS:
        alerts.append(
            GardenAlert(
                type=AlertType.HEAT,
                severity=AlertSeverity.MEDIUM,
                message=f"Extended heat period - {len(hot_days)} heat stress days",
                affected_days=[d.day_label for d in hot_days],
                recommendation="Increase watering and provide shade",
            )
        )

    wet_days = [d for d in days if _probability(d) > HEAVY_RAIN_PROBABILITY]
    if wet_days:
        alerts.append(
            GardenAlert(
                type=AlertType.RAIN,
                severity=AlertSeverity.LOW,
                message="Heavy rain expected - adjust watering schedule",
                affected_days=[d.day_label for d in wet_days],
            )
        )

    return alerts


def extreme_weather_events(days: list[EnrichedDailyForecast]) -> list[ExtremeEvent]:
    """Per-day frost, extreme heat and heavy rain events, in date order.

    Frost counts from a moderate frost risk (low of 32 F or below) and is
    severe under 28 F. Heat counts above 95 F (severe above 100 F), rain above
    1 inch (severe above 2 inches). One day can produce several events.
    """
    events: list[ExtremeEvent] = []
    for day in days:
        if day.frost_risk in (FrostRisk.MODERATE, FrostRisk.SEVERE):
            events.append(
                ExtremeEvent(
                    type=ExtremeEventType.FROST,
                    date=day.date,
                    severity=(
                        EventSeverity.SEVERE
                        if day.temp_low < SEVERE_FROST_LOW
                        else EventSeverity.MODERATE
                    ),
                    value=day.temp_low,
                    impact="High risk to tender plants",
                )
            )
        if day.temp_high > EXTREME_HEAT_HIGH:
            events.append(
                ExtremeEvent(
                    type=ExtremeEventType.EXTREME_HEAT,
                    date=day.date,
                    severity=(
                        EventSeverity.SEVERE
                        if day.temp_high > SEVERE_HEAT_HIGH
                        else EventSeverity.MODERATE
                    ),
                    value=day.temp_high,
                    impact="Heat stress risk for all plants",
                )
            )
        if day.precipitation > HEAVY_RAIN_INCHES:
            events.append(
                ExtremeEvent(
                    type=ExtremeEventType.HEAVY_RAIN,
                    date=day.date,
                    severity=(
                        EventSeverity.SEVERE
                        if day.precipitation > SEVERE_RAIN_INCHES
                        else EventSeverity.MODERATE
                    ),
                    value=day.precipitation,
                    impact="Potential flooding and soil saturation",
                )
            )
    return events


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


def temperature_stability(days: list[EnrichedDailyForecast]) -> float:
    """100 for a flat temperature trace, dropping 2 points per degree of spread."""
    if not days:
        return 100.0
    return _clamp(100 - statistics.pstdev(d.temp_avg for d in days) * 2)


def moisture_index(days: list[EnrichedDailyForecast]) -> float:
    """How close the horizon is to ~1.5 in of rain spread over ~4 wet days."""
    total = sum(d.precipitation for d in days)
    wet_days = sum(1 for d in days if _probability(d) > WET_DAY_PROBABILITY)
    precip_score = max(0.0, 100 - abs(total - 1.5) * 50)
    frequency_score = max(0.0, 100 - abs(wet_days - 4) * 25)
    return _clamp((precip_score + frequency_score) / 2)


def simulation_factors(days: list[EnrichedDailyForecast]) -> SimulationFactors:
    summary = forecast_summary(days)
    return SimulationFactors(
        temperature_stability=round(temperature_stability(days), 1),
        moisture_index=round(moisture_index(days), 1),
        growth_potential=round(_clamp(summary.total_growing_degree_days), 1),
        risk_factors=RiskFlags(
            frost=summary.frost_days > 0,
            heat=summary.heat_stress_days > 2,
            drought=summary.total_precipitation < 0.5 and summary.rain_days < 2,
            excess_moisture=summary.total_precipitation > 2.0,
        ),
    )
