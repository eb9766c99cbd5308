"""Provider-agnostic ground-sensor interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Location
from .models import GroundSensorReading


class GroundSensorProvider(ABC):
    """Base contract for real-time ground-sensor providers."""

    @abstractmethod
    def fetch_reading(self, location: Location) -> GroundSensorReading:
        """Fetch a fresh reading for exactly the requested location."""

    @abstractmethod
    def close(self) -> None:
        """Release provider resources."""
