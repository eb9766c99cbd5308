"""Service-level wiring: input validation, error surfacing and lifecycle."""

from __future__ import annotations

import logging
import random
from datetime import UTC, date, datetime
from types import SimpleNamespace
from typing import Any

import pytest

from aqi_insights.exceptions import (
    AirQualityError,
    ConfigError,
    GenerationOverloadedError,
    GroundSensorError,
    InvalidInputError,
)
from aqi_insights.generation.base import GenerationRequest, GenerativeBackend
from aqi_insights.models import Location
from aqi_insights.sensors.base import GroundSensorProvider
from aqi_insights.sensors.models import GroundSensorReading
from aqi_insights.service import UNEXPECTED_ERROR_MESSAGE, AirQualityService

FORECAST_PAYLOAD: dict[str, Any] = {
    "forecast": "Calm winds; PM2.5 lingers near current levels.",
    "current_aqi": 87,
    "pollutants": [
        {"name": "PM2.5", "aqi": 87, "recommendation": "Limit long outdoor workouts."},
        {"name": "O3", "aqi": 40, "recommendation": "Ozone is low."},
        {"name": "NO2", "aqi": 20, "recommendation": "NO2 is low."},
    ],
    "sparkline_data": [80] * 30,
    "health_recommendations": {
        "general_public": "Acceptable air quality.",
        "sensitive_groups": "Consider shorter outdoor activity.",
    },
}


def _make_settings(**overrides: Any) -> Any:
    defaults = {
        "gemini_api_key": None,
        "gemini_model": "gemini-test-model",
        "generation_timeout_seconds": 30.0,
        "generation_max_tool_rounds": 5,
        "generation_max_attempts": 3,
        "generation_retry_base_delay_seconds": 1.0,
        "location_suggestion_limit": 3,
    }
    defaults.update(overrides)
    return SimpleNamespace(**defaults)


class _RecordingSensor(GroundSensorProvider):
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.locations: list[Location] = []
        self.closed = False

    def fetch_reading(self, location: Location) -> GroundSensorReading:
        self.locations.append(location)
        if self.error is not None:
            raise self.error
        return GroundSensorReading(
            pm25=87,
            o3=40,
            no2=20,
            provider="stub",
            resolved_city=location.city,
            retrieved_at=datetime(2026, 10, 19, tzinfo=UTC),
        )

    def close(self) -> None:
        self.closed = True


class _RecordingBackend(GenerativeBackend):
    def __init__(self, outputs: list[Any]) -> None:
        self.outputs = list(outputs)
        self.requests: list[GenerationRequest[Any]] = []
        self.closed = False

    def generate(self, request: GenerationRequest[Any]) -> dict[str, Any]:
        self.requests.append(request)
        output = self.outputs.pop(0)
        if isinstance(output, Exception):
            raise output
        return output

    def close(self) -> None:
        self.closed = True


def _make_service(
    *,
    sensor: _RecordingSensor | None = None,
    backend: _RecordingBackend | None = None,
    sleeps: list[float] | None = None,
) -> AirQualityService:
    return AirQualityService(
        settings=_make_settings(),
        logger=logging.getLogger("test_service"),
        sensor=sensor or _RecordingSensor(),
        backend=backend or _RecordingBackend([]),
        sleep_fn=(sleeps if sleeps is not None else []).append,
        rng=random.Random(11),
    )


def test_forecast_air_quality_returns_result() -> None:
    sensor = _RecordingSensor()
    backend = _RecordingBackend([FORECAST_PAYLOAD])

    result = _make_service(sensor=sensor, backend=backend).forecast_air_quality(
        " Chicago ", "IL", "USA"
    )

    assert result.current_aqi == 87
    assert result.category == "Moderate"
    assert sensor.locations == [Location(city="Chicago", state="IL", country="USA")]


@pytest.mark.parametrize(
    ("city", "state", "country", "field"),
    [
        ("", "IL", "USA", "city"),
        ("Chicago", "  ", "USA", "state"),
        ("Chicago", "IL", "", "country"),
    ],
)
def test_blank_location_parts_are_invalid_input(
    city: str, state: str, country: str, field: str
) -> None:
    sensor = _RecordingSensor()
    service = _make_service(sensor=sensor)

    with pytest.raises(InvalidInputError, match=field):
        service.forecast_air_quality(city, state, country)
    assert sensor.locations == []


def test_ground_sensor_message_reaches_caller_unchanged() -> None:
    failure = GroundSensorError(
        'The location "Atlantis, Sea" could not be found by the data provider.',
        category="location",
    )
    backend = _RecordingBackend([FORECAST_PAYLOAD])
    service = _make_service(sensor=_RecordingSensor(error=failure), backend=backend)

    with pytest.raises(GroundSensorError) as exc_info:
        service.forecast_air_quality("Atlantis", "Sea", "Nowhere")

    assert exc_info.value is failure
    assert exc_info.value.user_message == str(failure)
    assert backend.requests == []


def test_unexpected_failure_becomes_generic_message(caplog: pytest.LogCaptureFixture) -> None:
    backend = _RecordingBackend([RuntimeError("socket exploded")])
    service = _make_service(backend=backend)

    with caplog.at_level(logging.ERROR, logger="test_service"):
        with pytest.raises(AirQualityError) as exc_info:
            service.forecast_air_quality("Chicago", "IL", "USA")

    assert str(exc_info.value) == UNEXPECTED_ERROR_MESSAGE
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert "socket exploded" in caplog.text
    assert "forecastAirQuality" in {getattr(r, "operation", None) for r in caplog.records}


def test_expected_failure_log_is_tagged_with_operation(caplog: pytest.LogCaptureFixture) -> None:
    failure = GroundSensorError("city not found", category="location")
    service = _make_service(sensor=_RecordingSensor(error=failure))

    with caplog.at_level(logging.ERROR, logger="test_service"):
        with pytest.raises(GroundSensorError):
            service.forecast_air_quality("Atlantis", "Sea", "Nowhere")

    assert "forecastAirQuality" in {getattr(r, "operation", None) for r in caplog.records}


def test_historical_air_quality_returns_inclusive_series() -> None:
    backend = _RecordingBackend([{"summary": "**Rising** late in the month."}])

    analysis = _make_service(backend=backend).get_historical_air_quality(
        "Delhi", "Delhi", "India", date(2024, 11, 1), date(2024, 11, 30)
    )

    assert len(analysis.chart_data) == 30
    assert analysis.chart_data[0].date == "Nov 1"
    assert all(point.aqi >= 10 for point in analysis.chart_data)


def test_reversed_history_range_is_invalid_input() -> None:
    backend = _RecordingBackend([])

    with pytest.raises(InvalidInputError, match="Invalid input"):
        _make_service(backend=backend).get_historical_air_quality(
            "Delhi", "Delhi", "India", date(2024, 12, 1), date(2024, 11, 1)
        )
    assert backend.requests == []


def test_historical_overload_exhaustion_uses_overloaded_message() -> None:
    overloaded = RuntimeError("503 The model is overloaded")
    backend = _RecordingBackend([overloaded, overloaded, overloaded])
    sleeps: list[float] = []

    with pytest.raises(GenerationOverloadedError, match="currently overloaded"):
        _make_service(backend=backend, sleeps=sleeps).get_historical_air_quality(
            "Delhi", "Delhi", "India", date(2024, 1, 1), date(2024, 1, 7)
        )
    assert sleeps == [1.0, 2.0]


def test_notification_strategy_round_trip() -> None:
    backend = _RecordingBackend([{"strategy": "Alert when PM2.5 exceeds 35."}])

    strategy = _make_service(backend=backend).get_notification_strategy(
        "Delhi, India", "asthma, over 65"
    )

    assert strategy.strategy == "Alert when PM2.5 exceeds 35."


def test_blank_risk_factors_are_invalid_input() -> None:
    backend = _RecordingBackend([])

    with pytest.raises(InvalidInputError, match="risk_factors"):
        _make_service(backend=backend).get_notification_strategy("Delhi, India", "  ")
    assert backend.requests == []


def test_supported_locations_use_configured_limit() -> None:
    assert _make_service().get_supported_locations("usa") == [
        "New York, NY, USA",
        "Los Angeles, CA, USA",
        "Chicago, IL, USA",
    ]


def test_context_manager_closes_sensor_and_backend() -> None:
    sensor = _RecordingSensor()
    backend = _RecordingBackend([])

    with _make_service(sensor=sensor, backend=backend):
        pass

    assert sensor.closed is True
    assert backend.closed is True


def test_missing_gemini_key_fails_construction() -> None:
    with pytest.raises(ConfigError, match="GEMINI_API_KEY"):
        AirQualityService(
            settings=_make_settings(), logger=logging.getLogger("test_service")
        )
