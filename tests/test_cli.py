"""
Tests for CLI functionality.

These tests verify the command-line interface logic.
"""

from __future__ import annotations

import argparse
import json
from datetime import date
from io import StringIO
from typing import TYPE_CHECKING
from unittest.mock import Mock, patch

import pytest

from garden_forecast.cli import (
    cmd_forecast,
    cmd_info,
    cmd_refresh,
    cmd_report,
    cmd_serve,
    create_parser,
    main,
)
from garden_forecast.engine import ForecastingEngine, GardenConfig
from garden_forecast.pipeline import WeatherService
from garden_forecast.schemas import ProviderResult

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from garden_forecast.schemas import DailyForecast

    DaysFactory = Callable[..., list[DailyForecast]]

TODAY = date(2026, 6, 1)


def _forecast_args(**overrides: object) -> argparse.Namespace:
    values: dict[str, object] = {
        "lat": None,
        "lon": None,
        "days": 5,
        "provider": None,
        "json": False,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestCreateParser:
    """Tests for create_parser function."""

    def test_creates_parser(self) -> None:
        """Parser is created successfully."""
        parser = create_parser()
        assert isinstance(parser, argparse.ArgumentParser)
        assert parser.prog == "garden-forecast"

    def test_parser_has_version(self) -> None:
        """Parser has version argument."""
        parser = create_parser()
        with pytest.raises(SystemExit):
            parser.parse_args(["--version"])

    def test_parser_has_debug_flag(self) -> None:
        """Parser accepts --debug flag."""
        parser = create_parser()
        args = parser.parse_args(["--debug", "info"])
        assert args.debug is True

    def test_parser_forecast_command(self) -> None:
        """Parser accepts forecast with coordinates, horizon and provider."""
        parser = create_parser()
        args = parser.parse_args(
            ["forecast", "--lat", "40.7", "--lon", "-74.0", "--days", "7", "--provider", "nws"]
        )
        assert args.command == "forecast"
        assert args.lat == 40.7
        assert args.lon == -74.0
        assert args.days == 7
        assert args.provider == "nws"
        assert args.json is False

    def test_parser_forecast_defaults(self) -> None:
        parser = create_parser()
        args = parser.parse_args(["forecast"])
        assert args.lat is None
        assert args.days == 10

    def test_parser_report_command(self) -> None:
        parser = create_parser()
        args = parser.parse_args(["report", "--days", "30"])
        assert args.command == "report"
        assert args.days == 30
        assert args.garden is None

    def test_parser_refresh_command(self) -> None:
        """Parser accepts refresh command."""
        parser = create_parser()
        args = parser.parse_args(["refresh"])
        assert args.command == "refresh"

    def test_parser_serve_with_port(self) -> None:
        """Parser accepts serve --port."""
        parser = create_parser()
        assert parser.parse_args(["serve"]).port is None
        assert parser.parse_args(["serve", "--port", "3000"]).port == 3000


class TestCmdInfo:
    """Tests for cmd_info function."""

    def test_prints_app_info(self) -> None:
        """Info command prints application information."""
        with patch("sys.stdout", new=StringIO()) as mock_stdout:
            exit_code = cmd_info(argparse.Namespace())
            output = mock_stdout.getvalue()

        assert exit_code == 0
        assert "Version" in output
        assert "Keyed providers" in output


def _orchestrator(days_factory: DaysFactory) -> Mock:
    orchestrator = Mock()
    orchestrator.get_forecast.side_effect = lambda request, deadline=None: ProviderResult(
        source="nws", days=days_factory(TODAY, request.horizon_days)
    )
    return orchestrator


class TestCmdForecast:
    """Tests for cmd_forecast function."""

    def test_prints_table(self, days_factory: DaysFactory) -> None:
        service = WeatherService(orchestrator=_orchestrator(days_factory))
        with (
            patch("garden_forecast.cli.WeatherService", return_value=service),
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            exit_code = cmd_forecast(_forecast_args(lat=35.99, lon=-78.9))
            output = mock_stdout.getvalue()

        assert exit_code == 0
        assert "5-day forecast for (35.99, -78.9) from nws" in output
        assert "2026-06-01 Mon" in output

    def test_json_output(self, days_factory: DaysFactory) -> None:
        service = WeatherService(orchestrator=_orchestrator(days_factory))
        with (
            patch("garden_forecast.cli.WeatherService", return_value=service),
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            cmd_forecast(_forecast_args(json=True))
            payload = json.loads(mock_stdout.getvalue())

        assert payload["source"] == "nws"
        assert len(payload["daily"]) == 5

    def test_passes_provider(self, days_factory: DaysFactory) -> None:
        orchestrator = _orchestrator(days_factory)
        service = WeatherService(orchestrator=orchestrator)
        with (
            patch("garden_forecast.cli.WeatherService", return_value=service),
            patch("sys.stdout", new=StringIO()),
        ):
            cmd_forecast(_forecast_args(provider="openweathermap"))

        request = orchestrator.get_forecast.call_args.args[0]
        assert request.preferred_provider == "openweathermap"
        orchestrator.close.assert_called_once_with()

    def test_invalid_input_returns_one(self) -> None:
        with (
            patch("garden_forecast.cli.WeatherService") as mock_service,
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            exit_code = cmd_forecast(_forecast_args(days=30))

        assert exit_code == 1
        assert "Error" in mock_stderr.getvalue()
        mock_service.assert_not_called()


class TestCmdReport:
    """Tests for cmd_report function."""

    def test_default_garden(self) -> None:
        with (
            patch("garden_forecast.cli.ForecastingEngine") as mock_engine,
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            generate = mock_engine.return_value.generate_report
            generate.return_value.model_dump.return_value = {"summary": {}}
            exit_code = cmd_report(argparse.Namespace(garden=None, days=30))

        assert exit_code == 0
        assert json.loads(mock_stdout.getvalue()) == {"summary": {}}
        (garden,) = generate.call_args.args
        assert isinstance(garden, GardenConfig)
        assert garden.plantings == []
        assert generate.call_args.kwargs == {"horizon_days": 30}

    def test_garden_file(self, tmp_path: Path, days_factory: DaysFactory) -> None:
        garden_file = tmp_path / "garden.json"
        garden_file.write_text(
            json.dumps(
                {
                    "name": "Backyard",
                    "plantings": [
                        {
                            "plant_key": "kale",
                            "plant_name": "Kale",
                            "planted_date": "2026-05-01",
                            "expected_harvest": "2026-06-15",
                        }
                    ],
                }
            )
        )
        engine = ForecastingEngine(
            weather_service=WeatherService(orchestrator=_orchestrator(days_factory)),
            today=lambda: TODAY,
        )
        with (
            patch("garden_forecast.cli.ForecastingEngine", return_value=engine),
            patch("sys.stdout", new=StringIO()) as mock_stdout,
        ):
            cmd_report(argparse.Namespace(garden=garden_file, days=30))

        report = json.loads(mock_stdout.getvalue())
        assert report["growth"]["plant_forecasts"][0]["plant_key"] == "kale"
        assert report["recommendations"][0]["type"] == "harvesting"
        assert len(report["weather"]["daily"]) == 14

    @pytest.mark.parametrize(
        "content",
        [
            '{"name": "Backyard", "plantings": [',
            '{"plantings": [{"plant_key": "kale"}]}',
            "not json at all",
        ],
    )
    def test_bad_garden_file_returns_one(self, tmp_path: Path, content: str) -> None:
        garden_file = tmp_path / "garden.json"
        garden_file.write_text(content)
        with (
            patch("garden_forecast.cli.ForecastingEngine") as mock_engine,
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            exit_code = cmd_report(argparse.Namespace(garden=garden_file, days=30))

        assert exit_code == 1
        assert mock_stderr.getvalue().startswith("Error: could not load garden from")
        mock_engine.assert_not_called()

    def test_missing_garden_file_returns_one(self, tmp_path: Path) -> None:
        with (
            patch("garden_forecast.cli.ForecastingEngine") as mock_engine,
            patch("sys.stderr", new=StringIO()) as mock_stderr,
        ):
            exit_code = cmd_report(
                argparse.Namespace(garden=tmp_path / "missing.json", days=30)
            )

        assert exit_code == 1
        assert "missing.json" in mock_stderr.getvalue()
        mock_engine.assert_not_called()

    def test_closes_weather_service(self) -> None:
        with (
            patch("garden_forecast.cli.ForecastingEngine") as mock_engine,
            patch("sys.stdout", new=StringIO()),
        ):
            mock_engine.return_value.generate_report.return_value.model_dump.return_value = {}
            cmd_report(argparse.Namespace(garden=None, days=30))

        mock_engine.return_value.weather_service.close.assert_called_once_with()


class TestCmdRefresh:
    """Tests for cmd_refresh function."""

    def test_all_refreshed_returns_zero(self) -> None:
        with (
            patch("garden_forecast.cli.refresh_forecasts") as mock_refresh,
            patch("garden_forecast.cli.close_service") as mock_close,
        ):
            mock_refresh.return_value = {"refreshed": 1, "failed": 0, "results": []}
            assert cmd_refresh(argparse.Namespace()) == 0
            mock_refresh.assert_called_once_with()
            mock_close.assert_called_once_with()

    def test_failure_returns_one(self) -> None:
        with (
            patch("garden_forecast.cli.refresh_forecasts") as mock_refresh,
            patch("garden_forecast.cli.close_service"),
        ):
            mock_refresh.return_value = {"refreshed": 0, "failed": 1, "results": []}
            assert cmd_refresh(argparse.Namespace()) == 1


class TestCmdServe:
    """Tests for cmd_serve function."""

    def test_uses_port_from_args(self) -> None:
        """Serve uses --port when provided."""
        with patch("garden_forecast.cli.uvicorn.run") as mock_run:
            exit_code = cmd_serve(argparse.Namespace(port=9999))

        assert exit_code == 0
        mock_run.assert_called_once()
        assert mock_run.call_args.args == ("garden_forecast.api:create_app",)
        assert mock_run.call_args.kwargs["factory"] is True
        assert mock_run.call_args.kwargs["port"] == 9999

    def test_uses_port_from_settings_when_none(self) -> None:
        """Serve falls back to api_port from settings."""
        with (
            patch("garden_forecast.cli.uvicorn.run") as mock_run,
            patch("garden_forecast.cli.get_settings") as mock_settings,
        ):
            mock_settings.return_value.api_port = 5555
            cmd_serve(argparse.Namespace(port=None))

        assert mock_run.call_args.kwargs["port"] == 5555


class TestMain:
    """Tests for main function."""

    def test_no_command_shows_help(self) -> None:
        """No command shows help and exits 0."""
        with patch("sys.stdout", new=StringIO()):
            assert main([]) == 0

    @pytest.mark.parametrize(
        ("argv", "handler"),
        [
            (["info"], "cmd_info"),
            (["forecast"], "cmd_forecast"),
            (["report"], "cmd_report"),
            (["refresh"], "cmd_refresh"),
            (["serve"], "cmd_serve"),
        ],
    )
    def test_dispatch(self, argv: list[str], handler: str) -> None:
        with patch(f"garden_forecast.cli.{handler}") as mock_cmd:
            mock_cmd.return_value = 0
            assert main(argv) == 0
            mock_cmd.assert_called_once()

    def test_unknown_command_shows_help(self) -> None:
        """Unknown command shows help and returns 1."""
        with patch("garden_forecast.cli.create_parser") as mock_parser:
            mock_parser.return_value.parse_args.return_value = argparse.Namespace(
                command="unknown", debug=False
            )
            assert main([]) == 1

