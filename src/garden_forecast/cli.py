"""
Command-line interface for garden-forecast.

Prints enriched forecasts and garden reports, refreshes the stored
forecasts and runs the HTTP API.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn
from pydantic import ValidationError

from garden_forecast import __version__
from garden_forecast.config import get_settings
from garden_forecast.engine import ForecastingEngine, GardenConfig
from garden_forecast.errors import InvalidInput
from garden_forecast.flows.refresh import close_service, refresh_forecasts
from garden_forecast.orchestrator import make_request
from garden_forecast.pipeline import WeatherService
from garden_forecast.schemas import Coordinates


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="garden-forecast",
        description="Garden weather forecasts from multiple providers with historical fallback",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'info' command
    subparsers.add_parser("info", help="Show application info")

    # 'forecast' command - enriched forecast for one point
    forecast_parser = subparsers.add_parser("forecast", help="Print an enriched forecast")
    forecast_parser.add_argument("--lat", type=float, default=None, help="Latitude")
    forecast_parser.add_argument("--lon", type=float, default=None, help="Longitude")
    forecast_parser.add_argument(
        "--days", type=int, default=10, help="Horizon in days, 1-14 (default: 10)"
    )
    forecast_parser.add_argument(
        "--provider",
        type=str,
        default=None,
        help="Preferred provider (weatherapi, openweathermap, nws)",
    )
    forecast_parser.add_argument(
        "--json", action="store_true", help="Print the full forecast as JSON"
    )

    # 'report' command - combined garden report
    report_parser = subparsers.add_parser("report", help="Print a combined garden report")
    report_parser.add_argument(
        "--garden",
        type=Path,
        default=None,
        help="Garden config JSON file (default: empty garden at the configured location)",
    )
    report_parser.add_argument(
        "--days", type=int, default=90, help="Report horizon in days (default: 90)"
    )

    # 'refresh' command - refresh stored forecasts
    subparsers.add_parser("refresh", help="Refresh stored forecasts for reference locations")

    # 'serve' command - run the HTTP API
    serve_parser = subparsers.add_parser("serve", help="Serve the forecast API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to serve on (default: api_port from settings)",
    )

    return parser


def cmd_info(_args: argparse.Namespace) -> int:
    """Handle the 'info' command."""
    settings = get_settings()
    configured = sorted(settings.provider_credentials())
    print(f"Application: {settings.app_name}")
    print(f"Version: {__version__}")
    print(f"Environment: {settings.app_env}")
    print(f"Debug: {settings.debug}")
    print(f"Default location: {settings.location} ({settings.lat}, {settings.lon})")
    print(f"Keyed providers: {', '.join(configured) or 'none'}")
    print(f"NWS enabled: {settings.use_nws}")
    return 0


def cmd_forecast(args: argparse.Namespace) -> int:
    """Handle the 'forecast' command."""
    settings = get_settings()
    lat = args.lat if args.lat is not None else settings.lat
    lon = args.lon if args.lon is not None else settings.lon
    try:
        request = make_request(lat, lon, args.days, preferred_provider=args.provider)
    except InvalidInput as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    with WeatherService() as service:
        forecast = service.get_garden_forecast(request)
    if args.json:
        print(forecast.model_dump_json(indent=2))
        return 0

    note = " (historical averages)" if forecast.fallback else ""
    print(f"{forecast.horizon_days}-day forecast for ({lat}, {lon}) from {forecast.source}{note}")
    for day in forecast.daily:
        print(
            f"  {day.date} {day.day_label[:3]}  "
            f"{day.temp_low:5.1f}-{day.temp_high:5.1f}F  "
            f"{day.precipitation:4.2f}in  GDD {day.gdd_base50:4.1f}  "
            f"frost={day.frost_risk} heat={day.heat_stress_risk}  {day.short_description}"
        )
    for alert in forecast.alerts:
        print(f"  [{alert.severity}] {alert.message}: {', '.join(alert.affected_days)}")
    return 0


def cmd_report(args: argparse.Namespace) -> int:
    """Handle the 'report' command."""
    settings = get_settings()
    if args.garden is not None:
        try:
            garden = GardenConfig.model_validate_json(args.garden.read_text())
        except (OSError, ValidationError) as e:
            print(f"Error: could not load garden from {args.garden}: {e}", file=sys.stderr)
            return 1
    else:
        garden = GardenConfig(
            coordinates=Coordinates(latitude=settings.lat, longitude=settings.lon)
        )

    engine = ForecastingEngine()
    try:
        report = engine.generate_report(garden, horizon_days=args.days)
    finally:
        engine.weather_service.close()
    print(json.dumps(report.model_dump(mode="json"), indent=2))
    return 0


def cmd_refresh(_args: argparse.Namespace) -> int:
    """Handle the 'refresh' command: re-fetch and store reference forecasts."""
    try:
        result = refresh_forecasts()
    finally:
        close_service()
    print(f"Refreshed {result['refreshed']} locations, {result['failed']} failed.")
    return 0 if result["failed"] == 0 else 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle the 'serve' command: run the HTTP API."""
    settings = get_settings()
    port = args.port if args.port is not None else settings.api_port
    print(f"Serving forecast API on http://localhost:{port}/ (Ctrl+C to stop)")
    uvicorn.run("garden_forecast.api:create_app", factory=True, host="0.0.0.0", port=port)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    commands = {
        "info": cmd_info,
        "forecast": cmd_forecast,
        "report": cmd_report,
        "refresh": cmd_refresh,
        "serve": cmd_serve,
    }

    handler = commands.get(args.command)
    if handler:
        return handler(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
