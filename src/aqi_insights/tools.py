"""Supplemental data tools the forecast model may call during generation.

Both sources are simulated: values are derived from the length of the
location string so repeated calls for the same location agree.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from .generation.base import Tool
from .log_setup import get_logger

logger = get_logger("tools")

COMPASS_POINTS = (
    "N", "NNE", "NE", "ENE", "E", "ESE", "SE", "SSE",
    "S", "SSW", "SW", "WSW", "W", "WNW", "NW", "NNW",
)


class LocationQuery(BaseModel):
    """Tool input: a free-text location, usually just the city name."""

    location: str = Field(min_length=1, description="The city name to look up.")


class SatelliteObservation(BaseModel):
    """Satellite-derived aerosol and cloud estimate."""

    aerosol_optical_depth: float = Field(
        ge=0, le=1, description="A value from 0 to 1 indicating aerosol density."
    )
    cloud_cover: float = Field(
        ge=0, le=100, description="A percentage from 0 to 100 indicating cloud coverage."
    )


class WeatherModelObservation(BaseModel):
    """Weather-model wind and precipitation estimate."""

    wind_speed_kmh: float = Field(ge=0, description="Wind speed in km/h.")
    wind_direction: str = Field(description="16-point compass wind direction, e.g. NNE.")
    precipitation_chance: float = Field(
        ge=0, le=100, description="Percentage chance of precipitation."
    )


def get_satellite_data(query: LocationQuery) -> SatelliteObservation:
    logger.info("[Tool] Fetching satellite data for %s", query.location)
    seed = len(query.location)
    return SatelliteObservation(
        aerosol_optical_depth=(seed % 10) / 10,
        cloud_cover=(seed * 7) % 100,
    )


def get_weather_model_data(query: LocationQuery) -> WeatherModelObservation:
    logger.info("[Tool] Fetching weather model data for %s", query.location)
    seed = len(query.location)
    return WeatherModelObservation(
        wind_speed_kmh=round((seed * 1.2) % 30, 1),
        wind_direction=COMPASS_POINTS[seed % len(COMPASS_POINTS)],
        precipitation_chance=(seed * 5) % 100,
    )


SATELLITE_TOOL = Tool(
    name="getSatelliteData",
    description=(
        "Retrieves satellite imagery analysis for a given location, focusing on aerosol "
        "optical depth and cloud cover."
    ),
    input_model=LocationQuery,
    output_model=SatelliteObservation,
    handler=get_satellite_data,
)

WEATHER_MODEL_TOOL = Tool(
    name="getWeatherModelData",
    description=(
        "Retrieves weather forecast data for a location, including wind speed, direction, "
        "and chance of precipitation, which influence air quality."
    ),
    input_model=LocationQuery,
    output_model=WeatherModelObservation,
    handler=get_weather_model_data,
)


def supplemental_tools() -> tuple[Tool, ...]:
    return (SATELLITE_TOOL, WEATHER_MODEL_TOOL)
