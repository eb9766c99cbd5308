"""Ground-sensor provider integrations."""

from .base import GroundSensorProvider
from .iqair import IQAirGroundSensorClient
from .models import GroundSensorReading

__all__ = [
    "GroundSensorProvider",
    "GroundSensorReading",
    "IQAirGroundSensorClient",
]
