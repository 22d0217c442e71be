"""
Agricultural metrics computed from a single day of weather (pure functions, no I/O).

Growing degree days use the single-sine method with a horizontal upper cutoff:

    T_max <= base:   GDD = 0
    T_min >= base:   GDD = (max(T_min, base) + min(T_max, cap)) / 2 - base
    otherwise:       M = (T_max' + T_min) / 2,  a = (T_max' - T_min) / 2
                     M <= base:  GDD = 0
                     theta = asin((base - M) / a)
                     GDD = ((M - base)(pi/2 - theta) + a cos(theta)) / pi

where T_max' is T_max clamped to the cap.

Comfort indices follow the NWS formulas:
    - Heat index: Rothfusz regression (simplified first, full polynomial >= 80 F)
    - Wind chill: 35.74 + 0.6215 T - 35.75 V^0.16 + 0.4275 T V^0.16

References:
    - UC IPM: Degree-days, single sine method
    - NWS Weather Prediction Center: heat index equation
    - NWS: wind chill chart (2001 revision)
"""

from __future__ import annotations

import math
import re

from garden_forecast.schemas import (
    DroughtStress,
    FrostRisk,
    HeatStressRisk,
    PlantingConditions,
    Suitability,
)

DEFAULT_BASE_TEMP_F = 50.0
DEFAULT_CAP_TEMP_F = 86.0

# Soil at seeding depth lags the air temperature
SOIL_LAG_F = 3.0

# Full NWS heat index regression coefficients
_HI_COEFFS = (
    -42.379,
    2.04901523,
    10.14333127,
    -0.22475541,
    -0.00683783,
    -0.05481717,
    0.00122874,
    0.00085282,
    -0.00000199,
)

_WIND_RE = re.compile(r"(\d+(?:\.\d+)?)(?:\s*to\s*(\d+(?:\.\d+)?))?", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Heat accumulation
# ---------------------------------------------------------------------------


def growing_degree_days(
    temp_min: float,
    temp_max: float,
    base_temp: float = DEFAULT_BASE_TEMP_F,
    cap_temp: float = DEFAULT_CAP_TEMP_F,
) -> float:
    """Compute GDD for one day using the single-sine method.

    Args:
        temp_min: Daily minimum temperature (F).
        temp_max: Daily maximum temperature (F).
        base_temp: Base development temperature (default 50 F).
        cap_temp: Upper cutoff; temperatures above it are capped (default 86 F).

    Returns:
        Growing degree days for the day (>= 0).
    """
    if temp_max <= base_temp:
        return 0.0

    effective_max = min(temp_max, cap_temp)

    if temp_min >= base_temp:
        return max(0.0, (effective_max + max(temp_min, base_temp)) / 2 - base_temp)

    # Threshold crossed during the day: integrate the part of the sine above base
    amplitude = (effective_max - temp_min) / 2
    midpoint = (effective_max + temp_min) / 2
    if amplitude <= 0 or midpoint <= base_temp:
        return 0.0

    theta = math.asin((base_temp - midpoint) / amplitude)
    return ((midpoint - base_temp) * (math.pi / 2 - theta) + amplitude * math.cos(theta)) / math.pi


def soil_temperature_estimate(temp_avg: float) -> float:
    """Rough soil temperature at seeding depth from the daily mean air temperature."""
    return temp_avg - SOIL_LAG_F


# ---------------------------------------------------------------------------
# Comfort indices
# ---------------------------------------------------------------------------


def heat_index(temp_f: float, humidity_pct: float | None) -> float:
    """Perceived temperature from air temperature and relative humidity.

    Returns ``temp_f`` unchanged below 80 F or 40 % humidity, where the
    regression is not meaningful.
    """
    if humidity_pct is None or temp_f < 80 or humidity_pct < 40:
        return temp_f

    t = temp_f
    rh = humidity_pct
    hi = 0.5 * (t + 61.0 + ((t - 68.0) * 1.2) + (rh * 0.094))

    if hi >= 80:
        c1, c2, c3, c4, c5, c6, c7, c8, c9 = _HI_COEFFS
        hi = (
            c1
            + c2 * t
            + c3 * rh
            + c4 * t * rh
            + c5 * t * t
            + c6 * rh * rh
            + c7 * t * t * rh
            + c8 * t * rh * rh
            + c9 * t * t * rh * rh
        )

    return float(round(hi))


def parse_wind_speed(text: str | None) -> float | None:
    """Extract a speed in mph from provider free text.

    Handles ``"10 mph"`` and ranges like ``"10 to 15 mph"`` (averaged).
    Structured numeric wind should be passed straight to :func:`wind_chill`;
    this is only for providers that report wind as prose.
    """
    if not text:
        return None
    match = _WIND_RE.search(text)
    if not match:
        return None
    low = float(match.group(1))
    if match.group(2):
        return (low + float(match.group(2))) / 2
    return low


def wind_chill(temp_f: float, wind: float | str | None) -> float:
    """Perceived temperature from air temperature and wind speed.

    Args:
        temp_f: Air temperature (F).
        wind: Wind speed in mph, or provider free text such as ``"10 to 15 mph"``.

    Returns:
        Wind chill rounded to the nearest degree, or ``temp_f`` unchanged when
        it is above 50 F, the wind is unknown, or the wind is 3 mph or less.
    """
    if temp_f > 50 or wind is None:
        return temp_f

    speed = parse_wind_speed(wind) if isinstance(wind, str) else float(wind)
    if speed is None or speed <= 3:
        return temp_f

    v = speed**0.16
    return float(round(35.74 + 0.6215 * temp_f - 35.75 * v + 0.4275 * temp_f * v))


def apparent_temperature(
    temp_avg: float,
    humidity: float | None,
    wind: float | str | None,
) -> float:
    """Feels-like temperature: heat index when hot and humid, wind chill when cold."""
    if temp_avg >= 80 and humidity is not None and humidity >= 40:
        return heat_index(temp_avg, humidity)
    if temp_avg <= 50 and wind is not None and wind != "":
        return wind_chill(temp_avg, wind)
    return temp_avg


# ---------------------------------------------------------------------------
# Risk classification
# ---------------------------------------------------------------------------


def frost_risk(temp_low: float) -> FrostRisk:
    if temp_low <= 28:
        return FrostRisk.SEVERE
    if temp_low <= 32:
        return FrostRisk.MODERATE
    if temp_low <= 36:
        return FrostRisk.LIGHT
    return FrostRisk.NONE


def heat_stress_risk(heat_index_value: float) -> HeatStressRisk:
    if heat_index_value >= 105:
        return HeatStressRisk.EXTREME
    if heat_index_value >= 95:
        return HeatStressRisk.HIGH
    if heat_index_value >= 85:
        return HeatStressRisk.MODERATE
    return HeatStressRisk.LOW


def estimate_evapotranspiration(temp_high: float) -> float:
    """Daily evapotranspiration in inches (temperature-only Penman simplification)."""
    return max(0.0, (temp_high - 32) * 0.008)


def drought_stress(precipitation_in: float, temp_high: float) -> DroughtStress:
    """Classify one day's water balance (precipitation minus evapotranspiration)."""
    balance = precipitation_in - estimate_evapotranspiration(temp_high)
    if balance < -0.3:
        return DroughtStress.HIGH
    if balance < -0.1:
        return DroughtStress.MODERATE
    if balance < 0:
        return DroughtStress.LOW
    return DroughtStress.NONE


_SUITABILITY_BY_SCORE = {
    0: Suitability.POOR,
    1: Suitability.FAIR,
    2: Suitability.GOOD,
    3: Suitability.EXCELLENT,
}


def planting_suitability(
    *,
    precipitation: float,
    temp_high: float,
    temp_low: float,
    soil_temp: float,
    frost: FrostRisk,
) -> PlantingConditions:
    """Score a day for field work, direct seeding and transplanting.

    Each gate is pass/fail; the overall rating is the number of gates passed.
    """
    soil_workable = precipitation < 0.5 and temp_high > 40
    seed_germination = 45 < soil_temp < 85
    transplant_safe = frost is FrostRisk.NONE and temp_low > 40
    score = sum((soil_workable, seed_germination, transplant_safe))
    return PlantingConditions(
        soil_workable=soil_workable,
        seed_germination=seed_germination,
        transplant_safe=transplant_safe,
        overall_suitability=_SUITABILITY_BY_SCORE[score],
    )
