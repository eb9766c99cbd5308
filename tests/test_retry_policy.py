"""Overload-only retry: schedule, classification and exhaustion."""

from __future__ import annotations

import logging

import pytest

from aqi_insights.exceptions import (
    GenerationError,
    GenerationOverloadedError,
    GroundSensorError,
    OutputValidationError,
)
from aqi_insights.generation.retry import OVERLOADED_MESSAGE, RetryPolicy, is_overload_error


class _FlakyOperation:
    def __init__(self, failures: list[Exception], result: str = "ok") -> None:
        self.failures = list(failures)
        self.result = result
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        return self.result


def _make_policy(sleeps: list[float], **overrides: object) -> RetryPolicy:
    return RetryPolicy(
        logger=logging.getLogger("test_retry"),
        sleep_fn=sleeps.append,
        **overrides,  # type: ignore[arg-type]
    )


@pytest.mark.parametrize(
    "exc",
    [
        GenerationError("AI service error 503: UNAVAILABLE", status_code=503),
        GenerationError("upstream said no", status_code=503),
        RuntimeError("503 Service Unavailable"),
        RuntimeError("The model is OVERLOADED right now"),
    ],
)
def test_overload_errors_are_retryable(exc: Exception) -> None:
    assert is_overload_error(exc) is True


@pytest.mark.parametrize(
    "exc",
    [
        GenerationError("AI service error 400: bad request", status_code=400),
        OutputValidationError("did not match the expected format"),
        GroundSensorError("city not found", category="location"),
        GenerationOverloadedError(OVERLOADED_MESSAGE, status_code=503),
        ValueError("something else"),
    ],
)
def test_other_errors_are_not_retryable(exc: Exception) -> None:
    assert is_overload_error(exc) is False


def test_success_on_third_attempt_sleeps_one_then_two_seconds() -> None:
    sleeps: list[float] = []
    operation = _FlakyOperation(
        [
            GenerationError("AI service error 503: overloaded", status_code=503),
            GenerationError("AI service error 503: overloaded", status_code=503),
        ]
    )

    result = _make_policy(sleeps).run(operation, description="historicalAirQuality")

    assert result == "ok"
    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]


def test_first_attempt_success_never_sleeps() -> None:
    sleeps: list[float] = []
    operation = _FlakyOperation([])

    assert _make_policy(sleeps).run(operation) == "ok"
    assert operation.calls == 1
    assert sleeps == []


def test_non_overload_error_propagates_after_one_attempt() -> None:
    sleeps: list[float] = []
    failure = GenerationError("AI service error 400: invalid argument", status_code=400)
    operation = _FlakyOperation([failure])

    with pytest.raises(GenerationError) as exc_info:
        _make_policy(sleeps).run(operation)

    assert exc_info.value is failure
    assert operation.calls == 1
    assert sleeps == []


def test_exhaustion_raises_overloaded_error_without_trailing_sleep() -> None:
    sleeps: list[float] = []
    last = RuntimeError("503 again")
    operation = _FlakyOperation([RuntimeError("503"), RuntimeError("503"), last])

    with pytest.raises(GenerationOverloadedError) as exc_info:
        _make_policy(sleeps).run(operation)

    assert str(exc_info.value) == OVERLOADED_MESSAGE
    assert exc_info.value.status_code == 503
    assert exc_info.value.__cause__ is last
    assert operation.calls == 3
    assert sleeps == [1.0, 2.0]


def test_custom_attempts_and_delay_scale_linearly() -> None:
    sleeps: list[float] = []
    operation = _FlakyOperation([RuntimeError("overloaded")] * 3)

    policy = _make_policy(sleeps, max_attempts=4, base_delay_seconds=0.5)

    assert policy.run(operation) == "ok"
    assert sleeps == [0.5, 1.0, 1.5]


def test_zero_base_delay_skips_sleeping() -> None:
    sleeps: list[float] = []
    operation = _FlakyOperation([RuntimeError("overloaded")])

    assert _make_policy(sleeps, base_delay_seconds=0.0).run(operation) == "ok"
    assert sleeps == []


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"max_attempts": 0}, "max_attempts"),
        ({"base_delay_seconds": -1.0}, "base_delay_seconds"),
    ],
)
def test_invalid_policy_arguments_are_rejected(overrides: dict[str, float], message: str) -> None:
    with pytest.raises(ValueError, match=message):
        RetryPolicy(**overrides)  # type: ignore[arg-type]
