"""Typed models for normalized ground-sensor readings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class GroundSensorReading(BaseModel):
    """Live pollutant levels for one location, created fresh per request."""

    pm25: float = Field(ge=0, description="PM2.5 level expressed as US AQI.")
    o3: float = Field(ge=0, description="Ozone concentration in ppb (placeholder on free tier).")
    no2: float = Field(
        ge=0, description="Nitrogen dioxide concentration in ppb (placeholder on free tier)."
    )
    provider: str
    resolved_city: str
    retrieved_at: datetime
