"""Supported-location suggestions and canonical location parsing."""

from __future__ import annotations

from pydantic import ValidationError

from .exceptions import LocationFormatError
from .models import Location

SUPPORTED_LOCATIONS: tuple[str, ...] = (
    "New York, NY, USA",
    "Los Angeles, CA, USA",
    "Chicago, IL, USA",
    "Houston, TX, USA",
    "Phoenix, AZ, USA",
    "Philadelphia, PA, USA",
    "San Antonio, TX, USA",
    "San Diego, CA, USA",
    "Dallas, TX, USA",
    "San Jose, CA, USA",
    "London, England, UK",
    "Paris, Ile-de-France, France",
    "Tokyo, Tokyo, Japan",
    "Delhi, Delhi, India",
    "Shanghai, Shanghai, China",
    "Sao Paulo, Sao Paulo, Brazil",
    "Mumbai, Maharashtra, India",
    "Beijing, Beijing, China",
    "Cairo, Cairo, Egypt",
    "Dhaka, Dhaka, Bangladesh",
)

FORMAT_HINT = "Invalid location format. Please use 'City, State, Country', e.g. 'Chicago, IL, USA'."


def get_supported_locations(query: str | None, limit: int = 5) -> list[str]:
    """Return up to ``limit`` supported locations containing ``query``."""
    if not query or not query.strip():
        return list(SUPPORTED_LOCATIONS[:limit])
    needle = query.strip().casefold()
    return [loc for loc in SUPPORTED_LOCATIONS if needle in loc.casefold()][:limit]


def parse_location(text: str) -> Location:
    """Parse canonical "City, State, Country" text.

    Two-part "City, Country" strings are rejected rather than guessing a
    state, since the ground-sensor provider requires all three parts.
    """
    parts = [part.strip() for part in text.split(",")]
    if len(parts) != 3 or not all(parts):
        raise LocationFormatError(FORMAT_HINT)
    try:
        return Location(city=parts[0], state=parts[1], country=parts[2])
    except ValidationError as exc:
        raise LocationFormatError(FORMAT_HINT) from exc
