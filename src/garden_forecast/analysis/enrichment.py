"""Apply the agronomy calculators to normalized daily forecasts."""

from __future__ import annotations

from typing import TYPE_CHECKING

from garden_forecast.analysis import agronomy
from garden_forecast.schemas import EnrichedDailyForecast

if TYPE_CHECKING:
    from garden_forecast.schemas import DailyForecast

# Upper bounds (exclusive) of the daytime temperature bands, F
TEMPERATURE_BANDS = (
    (32, "Freezing"),
    (40, "Very Cold"),
    (50, "Cool"),
    (80, "Ideal"),
    (90, "Warm"),
)
HOT_LABEL = "Hot"

# Lower bounds (exclusive) of the rain likelihood labels, percent
RAIN_LABELS = (
    (70, "Heavy Rain Expected"),
    (40, "Rain Likely"),
    (20, "Possible Rain"),
)

STRONG_WIND_MPH = 20


def _wind_mph(day: DailyForecast) -> float | None:
    wind = day.wind
    if isinstance(wind, str):
        return agronomy.parse_wind_speed(wind)
    return wind


def garden_conditions(day: DailyForecast) -> list[str]:
    """Short labels for the daytime temperature band and the chance of rain.

    A high of 85 F with a 55% chance of rain gives ``["Warm", "Rain Likely"]``.
    """
    band = next((label for limit, label in TEMPERATURE_BANDS if day.temp_high < limit), HOT_LABEL)
    conditions = [band]

    chance = day.precipitation_probability or 0.0
    rain = next((label for limit, label in RAIN_LABELS if chance > limit), None)
    if rain:
        conditions.append(rain)
    return conditions


def recommended_actions(day: DailyForecast) -> list[str]:
    """Garden tasks suggested by the day's temperature, rain chance and wind."""
    actions: list[str] = []
    temp = day.temp_high
    chance = day.precipitation_probability or 0.0

    if temp < 32:
        actions += ["Protect tender plants from frost", "Avoid outdoor planting"]
    elif temp < 40:
        actions += ["Good day for cool-season crop care", "Check cold frames and row covers"]
    elif temp > 90:
        actions += ["Provide shade for heat-sensitive plants", "Water early morning or evening"]

    if chance > 70:
        actions += ["Skip watering - rain expected", "Good day for indoor tasks"]
    elif chance < 20 and temp > 75:
        actions.append("Extra watering may be needed")

    wind = _wind_mph(day)
    if wind is not None and wind >= STRONG_WIND_MPH:
        actions.append("Secure tall plants and covers")

    return actions


def enrich_day(day: DailyForecast) -> EnrichedDailyForecast:
    """Derive GDD, comfort indices, risk classes and planting conditions for one day.

    Heat index is taken at the daily high, wind chill at the daily low and the
    apparent temperature at the daily mean.
    """
    soil_temp = agronomy.soil_temperature_estimate(day.temp_avg)
    hi = agronomy.heat_index(day.temp_high, day.humidity)
    frost = agronomy.frost_risk(day.temp_low)

    return EnrichedDailyForecast(
        **day.model_dump(),
        gdd_base50=agronomy.growing_degree_days(day.temp_low, day.temp_high, base_temp=50),
        gdd_base32=agronomy.growing_degree_days(day.temp_low, day.temp_high, base_temp=32),
        soil_temp_estimate=soil_temp,
        heat_index=hi,
        wind_chill=agronomy.wind_chill(day.temp_low, day.wind),
        apparent_temperature=agronomy.apparent_temperature(day.temp_avg, day.humidity, day.wind),
        frost_risk=frost,
        heat_stress_risk=agronomy.heat_stress_risk(hi),
        drought_stress=agronomy.drought_stress(day.precipitation, day.temp_high),
        planting_conditions=agronomy.planting_suitability(
            precipitation=day.precipitation,
            temp_high=day.temp_high,
            temp_low=day.temp_low,
            soil_temp=soil_temp,
            frost=frost,
        ),
        garden_conditions=garden_conditions(day),
        recommended_actions=recommended_actions(day),
    )


def enrich_forecast(days: list[DailyForecast]) -> list[EnrichedDailyForecast]:
    return [enrich_day(day) for day in days]
