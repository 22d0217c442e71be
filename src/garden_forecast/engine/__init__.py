"""Forecasting engine: the weather pipeline plus growth, risk and economic projections.

Modules:
  - engine: ForecastingEngine (concurrent sub-forecasts -> ForecastReport)
  - growth: growth stage, harvest windows, harvest calendar
  - risk: weather/plant/economic risk factors and the overall level
  - economics: cost and market-value trends
  - recommendations: prioritized actions
  - models: GardenConfig, Planting and report models
"""

from garden_forecast.engine.engine import ForecastingEngine
from garden_forecast.engine.models import ForecastReport, GardenConfig, Planting

__all__ = [
    "ForecastReport",
    "ForecastingEngine",
    "GardenConfig",
    "Planting",
]
