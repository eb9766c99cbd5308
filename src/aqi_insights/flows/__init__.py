"""Orchestration flows behind the inbound operations."""

from .forecast import ForecastOrchestrator, build_forecast_request
from .historical import (
    HistoricalAnalysisOrchestrator,
    HistoricalModelOutput,
    generate_historical_series,
)
from .notification import NotificationStrategyInput, NotificationStrategyOrchestrator

__all__ = [
    "ForecastOrchestrator",
    "HistoricalAnalysisOrchestrator",
    "HistoricalModelOutput",
    "NotificationStrategyInput",
    "NotificationStrategyOrchestrator",
    "build_forecast_request",
    "generate_historical_series",
]
