"""Forecast orchestration: ground-sensor gatekeeper, then tool-assisted generation."""

from __future__ import annotations

import logging

from pydantic import BaseModel

from ..generation.base import GenerationRequest, GenerativeBackend, generate_validated
from ..models import ForecastResult, Location
from ..sensors.base import GroundSensorProvider
from ..sensors.models import GroundSensorReading
from ..tools import supplemental_tools

FORECAST_PROMPT = """\
You are an expert meteorologist and air quality scientist. Your task is to generate a \
comprehensive air quality forecast for a given location using pre-fetched ground sensor \
data and other available tools.

You have been provided with the following real-time ground sensor data:
- PM2.5: {pm25:g} AQI
- O3: {o3:g} ppb
- NO2: {no2:g} ppb

Now, you MUST use the other available tools to gather supplemental data:
1. Call 'getSatelliteData' with just the city name to get satellite-based observations.
2. Call 'getWeatherModelData' with just the city name to get the weather forecast.

Once you have the data from all sources (the provided ground data and the data from the \
tools), synthesize it to create your forecast.

The forecast must include:
- A detailed 1-day summary forecast that explains how the weather (wind, rain) will affect \
air quality.
- The overall current AQI for the location, calculated from the pollutant data above. It \
must equal the highest of the individual pollutant AQI values (US EPA rule).
- A breakdown of the individual pollutants PM2.5, O3 and NO2, each with its specific AQI \
value and a brief recommendation.
- A 30-day AQI forecast as an array of exactly 30 integers (from 0 to 300) for a sparkline chart.
- Detailed health recommendations: one for the general public and another specifically for \
sensitive groups (children, elderly, individuals with health conditions).

Location: {city}, {state}, {country}
"""


class ForecastPromptInput(BaseModel):
    """Everything the forecast prompt is rendered from."""

    location: Location
    ground_data: GroundSensorReading


def build_forecast_request(
    location: Location, reading: GroundSensorReading
) -> GenerationRequest[ForecastResult]:
    prompt_input = ForecastPromptInput(location=location, ground_data=reading)
    prompt = FORECAST_PROMPT.format(
        pm25=reading.pm25,
        o3=reading.o3,
        no2=reading.no2,
        city=location.city,
        state=location.state,
        country=location.country,
    )
    return GenerationRequest(
        name="forecastAirQuality",
        prompt=prompt,
        input_data=prompt_input,
        output_model=ForecastResult,
        tools=supplemental_tools(),
    )


class ForecastOrchestrator:
    """Produce a validated forecast for one location.

    No retries here: ground-sensor failures are user-actionable and backend
    failures pass through unchanged.
    """

    def __init__(
        self,
        *,
        sensor: GroundSensorProvider,
        backend: GenerativeBackend,
        logger: logging.Logger,
    ) -> None:
        self.sensor = sensor
        self.backend = backend
        self.logger = logger

    def run(self, location: Location) -> ForecastResult:
        # Any sensor error aborts before the model is involved.
        reading = self.sensor.fetch_reading(location)
        self.logger.info(
            "Ground data for %s: pm25=%g o3=%g no2=%g",
            location.label(),
            reading.pm25,
            reading.o3,
            reading.no2,
        )
        request = build_forecast_request(location, reading)
        result = generate_validated(self.backend, request, self.logger)
        self.logger.info(
            "Forecast ready for %s: current_aqi=%g", location.label(), result.current_aqi
        )
        return result
