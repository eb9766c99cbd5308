"""Bounded retry with linear backoff for transient backend overload."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from ..exceptions import GenerationError, GenerationOverloadedError

T = TypeVar("T")

OVERLOADED_MESSAGE = (
    "The AI service is currently overloaded and unable to handle the request. "
    "Please try again later."
)


def is_overload_error(exc: Exception) -> bool:
    """Return True when ``exc`` signals a transient 503/overloaded condition."""
    if isinstance(exc, GenerationOverloadedError):
        return False
    if isinstance(exc, GenerationError) and exc.status_code == 503:
        return True
    message = str(exc)
    return "503" in message or "overloaded" in message.lower()


class RetryPolicy:
    """Retry an operation while its failures look transient.

    The delay before attempt ``n`` (1-indexed, ``n >= 2``) is
    ``base_delay_seconds * (n - 1)``. Non-retryable errors propagate
    immediately; exhausting all attempts raises GenerationOverloadedError.
    """

    def __init__(
        self,
        *,
        max_attempts: int = 3,
        base_delay_seconds: float = 1.0,
        is_retryable: Callable[[Exception], bool] = is_overload_error,
        logger: logging.Logger | None = None,
        sleep_fn: Callable[[float], None] | None = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1.")
        if base_delay_seconds < 0:
            raise ValueError("base_delay_seconds must be >= 0.")
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self.is_retryable = is_retryable
        self.logger = logger or logging.getLogger("aqi_insights.generation.retry")
        self._sleep = sleep_fn or time.sleep

    def delay_before(self, attempt: int) -> float:
        return self.base_delay_seconds * (attempt - 1)

    def run(self, operation: Callable[[], T], *, description: str = "operation") -> T:
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            if attempt > 1:
                delay = self.delay_before(attempt)
                self.logger.warning(
                    "%s attempt %d/%d failed due to model overload; retrying in %.1fs",
                    description,
                    attempt - 1,
                    self.max_attempts,
                    delay,
                )
                if delay > 0:
                    self._sleep(delay)
            try:
                return operation()
            except Exception as exc:
                if not self.is_retryable(exc):
                    raise
                last_error = exc

        self.logger.error(
            "All %d attempts failed for %s: %s", self.max_attempts, description, last_error
        )
        raise GenerationOverloadedError(OVERLOADED_MESSAGE, status_code=503) from last_error
