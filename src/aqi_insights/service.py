"""Inbound operations consumed by the dashboard and the command line."""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from datetime import date
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from .config import Settings
from .exceptions import AirQualityError, InvalidInputError
from .flows.forecast import ForecastOrchestrator
from .flows.historical import HistoricalAnalysisOrchestrator
from .flows.notification import NotificationStrategyInput, NotificationStrategyOrchestrator
from .generation.base import GenerativeBackend
from .generation.gemini import GeminiBackend
from .generation.retry import RetryPolicy
from .locations import get_supported_locations
from .models import DateRange, ForecastResult, HistoricalAnalysis, Location, NotificationStrategy
from .sensors.base import GroundSensorProvider
from .sensors.iqair import IQAirGroundSensorClient

T = TypeVar("T")
ModelT = TypeVar("ModelT", bound=BaseModel)

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again later."


class AirQualityService:
    """Wires sensor, backend and retry policy into the three orchestrators.

    Every public operation either returns a validated result or raises an
    AirQualityError whose message is safe to display.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        logger: logging.Logger,
        sensor: GroundSensorProvider | None = None,
        backend: GenerativeBackend | None = None,
        sleep_fn: Callable[[float], None] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self.backend = backend or GeminiBackend(settings=settings, logger=logger)
        self.sensor = sensor or IQAirGroundSensorClient(settings=settings, logger=logger, rng=rng)
        retry_policy = RetryPolicy(
            max_attempts=settings.generation_max_attempts,
            base_delay_seconds=settings.generation_retry_base_delay_seconds,
            logger=logger,
            sleep_fn=sleep_fn or time.sleep,
        )
        self._forecast = ForecastOrchestrator(
            sensor=self.sensor, backend=self.backend, logger=logger
        )
        self._historical = HistoricalAnalysisOrchestrator(
            backend=self.backend, retry_policy=retry_policy, logger=logger, rng=rng
        )
        self._notification = NotificationStrategyOrchestrator(
            backend=self.backend, retry_policy=retry_policy, logger=logger
        )

    def __enter__(self) -> AirQualityService:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self.sensor.close()
        self.backend.close()

    def forecast_air_quality(self, city: str, state: str, country: str) -> ForecastResult:
        location = _validated(Location, city=city, state=state, country=country)
        return self._call("forecastAirQuality", lambda: self._forecast.run(location))

    def get_historical_air_quality(
        self,
        city: str,
        state: str,
        country: str,
        start: date,
        end: date,
    ) -> HistoricalAnalysis:
        location = _validated(Location, city=city, state=state, country=country)
        date_range = _validated(DateRange, start=start, end=end)
        return self._call(
            "getHistoricalAirQuality",
            lambda: self._historical.run(location, date_range),
        )

    def get_notification_strategy(self, location: str, risk_factors: str) -> NotificationStrategy:
        _validated(NotificationStrategyInput, location=location, risk_factors=risk_factors)
        return self._call(
            "getNotificationStrategy",
            lambda: self._notification.run(location, risk_factors),
        )

    def get_supported_locations(self, query: str | None) -> list[str]:
        return get_supported_locations(query, limit=self.settings.location_suggestion_limit)

    def _call(self, operation: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except AirQualityError as exc:
            self.logger.error("%s failed: %s", operation, exc, extra={"operation": operation})
            raise
        except Exception as exc:
            self.logger.exception(
                "%s failed unexpectedly: %s", operation, exc, extra={"operation": operation}
            )
            raise AirQualityError(UNEXPECTED_ERROR_MESSAGE) from exc


def _validated(model: type[ModelT], **values: Any) -> ModelT:
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        fields = sorted(
            {".".join(str(part) for part in err["loc"]) or "input" for err in exc.errors()}
        )
        raise InvalidInputError(f"Invalid input: please check {', '.join(fields)}.") from exc
