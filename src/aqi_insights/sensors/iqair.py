"""IQAir (AirVisual) ground-sensor provider implementation."""

from __future__ import annotations

import logging
import os
import random
from datetime import UTC, datetime
from typing import Any

import httpx

from ..config import Settings
from ..exceptions import GroundSensorError
from ..models import Location
from ..redaction import sanitize_for_logging, sanitize_text
from .base import GroundSensorProvider
from .models import GroundSensorReading

API_KEY_ENV_VAR = "IQAIR_API_KEY"

MISSING_KEY_MESSAGE = "Could not connect to the data service. Please contact support."
CONNECTIVITY_MESSAGE = (
    "Failed to connect to the air quality data service. Please check your network connection."
)
RATE_LIMIT_MESSAGE = (
    "The request limit for the air quality data service has been reached. "
    "Please try again later."
)
INVALID_KEY_MESSAGE = (
    "The API key for the data service is invalid or has expired. Please contact support."
)

_AVAILABILITY_CODES = {
    "too_many_requests": RATE_LIMIT_MESSAGE,
    "call_limit_reached": RATE_LIMIT_MESSAGE,
    "api_key_expired": INVALID_KEY_MESSAGE,
    "invalid_api_key": INVALID_KEY_MESSAGE,
}

# The free-tier city endpoint only reports the US AQI for PM2.5.
_O3_PLACEHOLDER_MAX_PPB = 79
_NO2_PLACEHOLDER_MAX_PPB = 49


class IQAirGroundSensorClient(GroundSensorProvider):
    """Fetches live PM2.5 readings from the IQAir city endpoint."""

    provider_name = "iqair"
    city_endpoint = "/city"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings
        self.logger = logger
        self._rng = rng or random.Random()
        self._client = httpx.Client(
            base_url=str(settings.iqair_base_url),
            timeout=settings.ground_sensor_timeout_seconds,
            headers={"Accept": "application/json", "User-Agent": "aqi-insights/0.1"},
        )

    def __enter__(self) -> IQAirGroundSensorClient:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_reading(self, location: Location) -> GroundSensorReading:
        """Fetch the current reading for ``location``.

        Raises GroundSensorError with a user-facing message for every failure;
        a nearby city is never substituted for the requested one.
        """
        self.logger.info("Fetching ground sensor data for %s", location.label())
        api_key = self._resolve_api_key()
        if not api_key:
            self.logger.error("IQAIR_API_KEY is not set; ground sensor data is unavailable.")
            raise GroundSensorError(MISSING_KEY_MESSAGE, category="configuration")

        payload = self._request_payload(
            {
                "city": location.city,
                "state": location.state,
                "country": location.country,
                "key": api_key,
            }
        )
        return self._normalize_reading(payload, location)

    def _resolve_api_key(self) -> str | None:
        """Current process environment first, then the key loaded with settings."""
        env_value = os.environ.get(API_KEY_ENV_VAR, "").strip()
        return env_value or self.settings.iqair_api_key

    def _request_payload(self, params: dict[str, str]) -> dict[str, Any]:
        try:
            response = self._client.get(self.city_endpoint, params=params)
        except httpx.HTTPError as exc:
            self.logger.error(
                "IQAir request failed (%s): %s", type(exc).__name__, sanitize_text(str(exc))
            )
            raise GroundSensorError(CONNECTIVITY_MESSAGE, category="connectivity") from exc

        # Failures arrive as JSON bodies with non-2xx codes, so parse before
        # looking at the HTTP status.
        try:
            payload = response.json()
        except ValueError as exc:
            self.logger.error(
                "IQAir returned non-JSON response (HTTP %d): %s",
                response.status_code,
                sanitize_text(response.text[:300]),
            )
            raise GroundSensorError(CONNECTIVITY_MESSAGE, category="connectivity") from exc

        if not isinstance(payload, dict):
            self.logger.error(
                "IQAir returned unexpected payload type %s.", type(payload).__name__
            )
            raise GroundSensorError(CONNECTIVITY_MESSAGE, category="connectivity")
        return payload

    def _normalize_reading(
        self, payload: dict[str, Any], location: Location
    ) -> GroundSensorReading:
        data = payload.get("data")
        if payload.get("status") != "success":
            code = None
            if isinstance(data, dict):
                code = self._as_str(data.get("message"))
            self.logger.warning(
                "IQAir reported failure for %s: %s",
                location.label(),
                sanitize_for_logging(payload),
            )
            raise self._map_provider_error(code or "an unknown error occurred", location)

        if not isinstance(data, dict):
            self.logger.error("IQAir success payload missing 'data' object.")
            raise GroundSensorError(CONNECTIVITY_MESSAGE, category="connectivity")

        resolved_city = self._as_str(data.get("city"))
        if resolved_city is None:
            self.logger.error("IQAir success payload missing resolved 'data.city'.")
            raise GroundSensorError(CONNECTIVITY_MESSAGE, category="connectivity")
        if resolved_city.casefold() != location.city.casefold():
            self.logger.warning(
                "IQAir resolved %r to %r; refusing nearby-city data.",
                location.city,
                resolved_city,
            )
            raise GroundSensorError(
                f'Data for "{location.city}" is not available. The closest available data '
                f'is for "{resolved_city}", but this is not supported.',
                category="location",
                provider_code="city_mismatch",
            )

        return GroundSensorReading(
            pm25=self._extract_pm25(data),
            o3=float(self._rng.randint(0, _O3_PLACEHOLDER_MAX_PPB)),
            no2=float(self._rng.randint(0, _NO2_PLACEHOLDER_MAX_PPB)),
            provider=self.provider_name,
            resolved_city=resolved_city,
            retrieved_at=datetime.now(UTC),
        )

    @staticmethod
    def _map_provider_error(code: str, location: Location) -> GroundSensorError:
        if code == "city_not_found":
            return GroundSensorError(
                f'The location "{location.city}, {location.state}" could not be found by the '
                "data provider. Please check the spelling or try a nearby city.",
                category="location",
                provider_code=code,
            )
        if code == "no_nearest_station":
            return GroundSensorError(
                f'No air quality monitoring station could be found for "{location.city}".',
                category="location",
                provider_code=code,
            )
        if code in _AVAILABILITY_CODES:
            return GroundSensorError(
                _AVAILABILITY_CODES[code],
                category="availability",
                provider_code=code,
            )
        return GroundSensorError(
            f"Data service error: {code}.",
            category="provider",
            provider_code=code,
        )

    @staticmethod
    def _extract_pm25(data: dict[str, Any]) -> float:
        current = data.get("current")
        pollution = current.get("pollution") if isinstance(current, dict) else None
        if not isinstance(pollution, dict):
            return 0.0
        value = pollution.get("aqius")
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            return 0.0
        return float(value)

    @staticmethod
    def _as_str(value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None
