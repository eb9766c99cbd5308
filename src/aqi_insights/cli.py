"""Command line front end: forecast, history, notification strategy, location lookup."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence
from datetime import date

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import AirQualityError, ConfigError
from .locations import get_supported_locations, parse_location
from .log_setup import setup_logger
from .models import ForecastResult, HistoricalAnalysis, aqi_category
from .service import AirQualityService


def _iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Invalid date {value!r}; expected YYYY-MM-DD.") from exc


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="AI-generated air quality forecasts, trends and alert strategies."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    forecast = subparsers.add_parser("forecast", help="Forecast air quality for a location.")
    forecast.add_argument("location", help="Location as 'City, State, Country'.")

    history = subparsers.add_parser("history", help="Summarize historical air quality.")
    history.add_argument("location", help="Location as 'City, State, Country'.")
    history.add_argument(
        "--from", dest="start", type=_iso_date, required=True, help="First day (YYYY-MM-DD)."
    )
    history.add_argument(
        "--to", dest="end", type=_iso_date, required=True, help="Last day, inclusive."
    )

    notify = subparsers.add_parser("notify", help="Suggest a notification strategy.")
    notify.add_argument("location", help="Location, e.g. 'Delhi, India'.")
    notify.add_argument(
        "--risk-factors",
        required=True,
        help="Comma separated risk factors, e.g. 'asthma, over 65'.",
    )

    locations = subparsers.add_parser("locations", help="List supported locations.")
    locations.add_argument("query", nargs="?", default="", help="Substring to match.")
    return parser.parse_args(argv)


def _print_forecast(console: Console, location: str, result: ForecastResult) -> None:
    console.print(
        f"Location={location} current_aqi={result.current_aqi:g} category={result.category}"
    )
    console.print(Panel(result.forecast, title="1-Day Forecast"))

    table = Table(title="Pollutants")
    table.add_column("Pollutant")
    table.add_column("AQI")
    table.add_column("Category")
    table.add_column("Recommendation", overflow="fold")
    for pollutant in result.pollutants:
        table.add_row(
            pollutant.name,
            f"{pollutant.aqi:g}",
            aqi_category(pollutant.aqi),
            pollutant.recommendation,
        )
    console.print(table)

    console.print(f"30-day outlook: {' '.join(str(v) for v in result.sparkline_data)}")
    health = result.health_recommendations
    console.print(Panel(health.general_public, title="General Public"))
    console.print(Panel(health.sensitive_groups, title="Sensitive Groups"))


def _print_history(console: Console, location: str, analysis: HistoricalAnalysis) -> None:
    console.print(f"Location={location} days={len(analysis.chart_data)}")
    console.print(Panel(Markdown(analysis.summary), title="Trend Summary"))

    table = Table(title="Daily AQI")
    table.add_column("Date")
    table.add_column("AQI")
    table.add_column("Category")
    for point in analysis.chart_data:
        table.add_row(point.date, str(point.aqi), aqi_category(point.aqi))
    console.print(table)


def _run_command(args: argparse.Namespace, service: AirQualityService, console: Console) -> None:
    if args.command == "forecast":
        location = parse_location(args.location)
        result = service.forecast_air_quality(location.city, location.state, location.country)
        _print_forecast(console, location.label(), result)
    elif args.command == "history":
        location = parse_location(args.location)
        analysis = service.get_historical_air_quality(
            location.city, location.state, location.country, args.start, args.end
        )
        _print_history(console, location.label(), analysis)
    elif args.command == "notify":
        strategy = service.get_notification_strategy(args.location, args.risk_factors)
        console.print(Panel(Markdown(strategy.strategy), title="Notification Strategy"))


def _print_locations(console: Console, query: str, settings: Settings) -> None:
    matches = get_supported_locations(query, limit=settings.location_suggestion_limit)
    if not matches:
        console.print(f"No supported locations match {query!r}.")
        return
    for match in matches:
        console.print(match)


def main(argv: Sequence[str] | None = None) -> int:
    """Run one command and return its exit code."""
    args = parse_args(argv)
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger = setup_logger()
        logger.error("Configuration failure: %s", exc)
        return 2
    logger = setup_logger(level=settings.log_level)
    logger.info("Starting %s command", args.command, extra={"config": settings.safe_summary()})

    if args.command == "locations":
        _print_locations(console, args.query, settings)
        return 0

    try:
        service = AirQualityService(settings=settings, logger=logger)
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return 2

    exit_code = 0
    try:
        with service:
            _run_command(args, service, console)
    except AirQualityError as exc:
        exit_code = 4
        console.print(f"[red]{exc.user_message}[/red]")
    except Exception as exc:  # pragma: no cover
        exit_code = 99
        logger.exception("Unexpected CLI failure: %s", exc)
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
