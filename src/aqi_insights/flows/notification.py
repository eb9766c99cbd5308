"""Personalized notification-threshold strategy generation."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from ..generation.base import GenerationRequest, GenerativeBackend, generate_validated
from ..generation.retry import RetryPolicy
from ..models import NotificationStrategy

NOTIFICATION_PROMPT = """\
You are an expert in air quality and health.

You will suggest a notification strategy for the user based on their location and risk factors.

Location: {location}
Risk Factors: {risk_factors}

Suggest a detailed notification strategy, including specific AQI thresholds for different \
pollutants and their health implications.
"""


class NotificationStrategyInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    location: str = Field(min_length=1, description="The user's location as a city and country.")
    risk_factors: str = Field(
        min_length=1,
        description="Comma separated risk factors such as asthma, age, or heart condition.",
    )


class NotificationStrategyOrchestrator:
    """Single-shot strategy generation with overload-only retry."""

    def __init__(
        self,
        *,
        backend: GenerativeBackend,
        retry_policy: RetryPolicy,
        logger: logging.Logger,
    ) -> None:
        self.backend = backend
        self.retry_policy = retry_policy
        self.logger = logger

    def run(self, location: str, risk_factors: str) -> NotificationStrategy:
        strategy_input = NotificationStrategyInput(location=location, risk_factors=risk_factors)
        request = GenerationRequest(
            name="notificationStrategy",
            prompt=NOTIFICATION_PROMPT.format(
                location=strategy_input.location,
                risk_factors=strategy_input.risk_factors,
            ),
            input_data=strategy_input,
            output_model=NotificationStrategy,
        )
        self.logger.info("Requesting notification strategy for %s", strategy_input.location)
        return self.retry_policy.run(
            lambda: generate_validated(self.backend, request, self.logger),
            description=request.name,
        )
