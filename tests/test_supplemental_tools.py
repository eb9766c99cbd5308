"""Supplemental tool determinism, bounds and argument validation."""

from __future__ import annotations

import pytest

from aqi_insights.exceptions import ToolError
from aqi_insights.tools import (
    COMPASS_POINTS,
    SATELLITE_TOOL,
    WEATHER_MODEL_TOOL,
    LocationQuery,
    get_satellite_data,
    get_weather_model_data,
    supplemental_tools,
)


def test_satellite_values_derive_from_location_length() -> None:
    observation = get_satellite_data(LocationQuery(location="Chicago"))

    assert observation.aerosol_optical_depth == pytest.approx(0.7)
    assert observation.cloud_cover == 49


def test_weather_model_values_derive_from_location_length() -> None:
    observation = get_weather_model_data(LocationQuery(location="Chicago"))

    assert observation.wind_speed_kmh == pytest.approx(8.4)
    assert observation.wind_direction == "SSE"
    assert observation.precipitation_chance == 35


@pytest.mark.parametrize("location", ["Chicago", "Paris", "Dhaka", "San Antonio"])
def test_repeated_calls_for_same_location_agree(location: str) -> None:
    query = LocationQuery(location=location)

    assert get_satellite_data(query) == get_satellite_data(query)
    assert get_weather_model_data(query) == get_weather_model_data(query)


@pytest.mark.parametrize("length", [1, 9, 10, 25, 64, 101])
def test_outputs_stay_in_declared_ranges(length: int) -> None:
    query = LocationQuery(location="x" * length)
    satellite = get_satellite_data(query)
    weather = get_weather_model_data(query)

    assert 0 <= satellite.aerosol_optical_depth <= 1
    assert 0 <= satellite.cloud_cover <= 100
    assert 0 <= weather.wind_speed_kmh < 30
    assert weather.wind_direction in COMPASS_POINTS
    assert 0 <= weather.precipitation_chance < 100


def test_compass_has_sixteen_points() -> None:
    assert len(COMPASS_POINTS) == 16
    assert len(set(COMPASS_POINTS)) == 16


def test_tool_invoke_returns_json_ready_output() -> None:
    output = WEATHER_MODEL_TOOL.invoke({"location": "Paris"})

    assert output == {
        "wind_speed_kmh": 6.0,
        "wind_direction": "ESE",
        "precipitation_chance": 25.0,
    }


@pytest.mark.parametrize("arguments", [{}, {"location": ""}, {"city": "Paris"}])
def test_tool_invoke_rejects_invalid_arguments(arguments: dict[str, str]) -> None:
    with pytest.raises(ToolError, match="getSatelliteData"):
        SATELLITE_TOOL.invoke(arguments)


def test_supplemental_tools_are_named_for_the_prompt() -> None:
    names = [tool.name for tool in supplemental_tools()]

    assert names == ["getSatelliteData", "getWeatherModelData"]
