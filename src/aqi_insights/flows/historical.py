"""Historical trend analysis over a synthetic daily AQI series."""

from __future__ import annotations

import logging
import math
import random
from datetime import date, timedelta

from pydantic import BaseModel, Field

from ..generation.base import GenerationRequest, GenerativeBackend, generate_validated
from ..generation.retry import RetryPolicy
from ..models import DateRange, HistoricalAnalysis, HistoricalDataPoint, Location

BASE_AQI = 75
SEASONAL_AMPLITUDE = 30
NOISE_AMPLITUDE = 20
MIN_AQI = 10

HISTORICAL_PROMPT = """\
You are an environmental data scientist. Analyze the provided historical air quality data \
for the specified location and time range.

Location: {city}, {state}, {country}
Date Range: From {start} to {end}

Historical Data:
{data_lines}

Based on this data, write a concise summary of the air quality trends. Format the summary \
using Markdown. Use bold text to highlight key patterns, and use bullet points to list out \
significant periods of high or low pollution. Provide a brief explanation for potential \
causes if possible (e.g., "a spike in mid-summer could be related to heat and stagnant \
air"). Do not invent data not present.

Your output must be a JSON object matching the specified schema. The 'chart_data' should \
be the exact data provided to you.
"""


class HistoricalModelOutput(BaseModel):
    """Shape the model answers with; its chart_data echo is never used."""

    summary: str = Field(
        description=(
            "Markdown analysis of the historical air quality trends, highlighting key "
            "patterns, highs, and lows."
        )
    )
    chart_data: list[HistoricalDataPoint] = Field(default_factory=list)


class HistoricalPromptInput(BaseModel):
    location: Location
    date_range: DateRange
    historical_data: list[HistoricalDataPoint]


def _day_label(day: date) -> str:
    return f"{day:%b} {day.day}"


def generate_historical_series(
    date_range: DateRange, rng: random.Random | None = None
) -> list[HistoricalDataPoint]:
    """One point per calendar day in the inclusive range: seasonal sinusoid plus noise."""
    rng = rng or random.Random()
    series: list[HistoricalDataPoint] = []
    for offset in range(date_range.days):
        day = date_range.start + timedelta(days=offset)
        seasonal = math.sin(2 * math.pi * (day.month - 1) / 12) * SEASONAL_AMPLITUDE
        noise = rng.uniform(-NOISE_AMPLITUDE, NOISE_AMPLITUDE)
        # Half-up rounding; round() would bank to even.
        aqi = max(MIN_AQI, math.floor(BASE_AQI + seasonal + noise + 0.5))
        series.append(HistoricalDataPoint(date=_day_label(day), aqi=aqi))
    return series


def build_historical_request(
    location: Location, date_range: DateRange, series: list[HistoricalDataPoint]
) -> GenerationRequest[HistoricalModelOutput]:
    prompt = HISTORICAL_PROMPT.format(
        city=location.city,
        state=location.state,
        country=location.country,
        start=date_range.start.isoformat(),
        end=date_range.end.isoformat(),
        data_lines="\n".join(f"- Date: {point.date}, AQI: {point.aqi}" for point in series),
    )
    return GenerationRequest(
        name="historicalAirQuality",
        prompt=prompt,
        input_data=HistoricalPromptInput(
            location=location, date_range=date_range, historical_data=series
        ),
        output_model=HistoricalModelOutput,
    )


class HistoricalAnalysisOrchestrator:
    """Summarize a generated series; retries only on backend overload."""

    def __init__(
        self,
        *,
        backend: GenerativeBackend,
        retry_policy: RetryPolicy,
        logger: logging.Logger,
        rng: random.Random | None = None,
    ) -> None:
        self.backend = backend
        self.retry_policy = retry_policy
        self.logger = logger
        self._rng = rng or random.Random()

    def run(self, location: Location, date_range: DateRange) -> HistoricalAnalysis:
        self.logger.info(
            "Generating historical data for %s from %s to %s",
            location.label(),
            date_range.start.isoformat(),
            date_range.end.isoformat(),
        )
        series = generate_historical_series(date_range, self._rng)
        request = build_historical_request(location, date_range, series)
        output = self.retry_policy.run(
            lambda: generate_validated(self.backend, request, self.logger),
            description=request.name,
        )
        return HistoricalAnalysis(
            summary=output.summary,
            chart_data=[point.model_copy() for point in series],
        )
