"""
Prefect flows for the forecast pipeline.

Flows:
- refresh: Re-fetch and store forecasts for the reference locations

Usage (local):
    python -m garden_forecast.flows.refresh

Usage (Prefect):
    prefect server start  # Optional, for dashboard
    python -m garden_forecast.flows.refresh --serve
"""
