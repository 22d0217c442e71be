"""Simplified input-cost and produce-value trends at weekly resolution.

Costs compound a fixed annual inflation rate daily. Market values follow a
20 % seasonal sine around a base retail price. Both are deterministic.
"""

from __future__ import annotations

import math
from datetime import date, timedelta

from garden_forecast.engine.models import EconomicForecast, TrendPoint

ECONOMIC_CONFIDENCE = 0.6
WEEK = 7
SEASONAL_AMPLITUDE = 0.2

# Annual inflation by input category
ANNUAL_INFLATION = {
    "seeds": 0.02,
    "amendments": 0.03,
    "tools": 0.01,
    "utilities": 0.04,
}

# Base retail price (USD per lb, herbs per oz)
BASE_MARKET_PRICES = {
    "leafy_greens": 8.50,
    "herbs": 24.00,
    "tomatoes": 4.20,
    "peppers": 5.80,
    "root_vegetables": 3.90,
}


def cost_trend(
    base_value: float, annual_inflation: float, days: int, today: date
) -> list[TrendPoint]:
    daily = annual_inflation / 365
    return [
        TrendPoint(
            date=today + timedelta(days=i),
            value=round(base_value * (1 + daily) ** i, 2),
            trend="increasing" if i > 0 else "stable",
        )
        for i in range(0, days, WEEK)
    ]


def market_value_trend(base_price: float, days: int, today: date) -> list[TrendPoint]:
    points = []
    for i in range(0, days, WEEK):
        seasonal = 1 + SEASONAL_AMPLITUDE * math.sin(i / 365 * 2 * math.pi)
        points.append(
            TrendPoint(
                date=today + timedelta(days=i),
                value=round(base_price * seasonal, 2),
                seasonal_factor=round(seasonal, 2),
            )
        )
    return points


def forecast_economics(horizon_days: int, today: date) -> EconomicForecast:
    return EconomicForecast(
        cost_trends={
            name: cost_trend(1.0, rate, horizon_days, today)
            for name, rate in ANNUAL_INFLATION.items()
        },
        market_values={
            name: market_value_trend(price, horizon_days, today)
            for name, price in BASE_MARKET_PRICES.items()
        },
        confidence=ECONOMIC_CONFIDENCE,
    )
