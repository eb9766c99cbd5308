"""Application exception classes."""

from __future__ import annotations


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class AirQualityError(Exception):
    """Base class for failures whose message is safe to show to the user."""

    @property
    def user_message(self) -> str:
        return str(self)


class InvalidInputError(AirQualityError):
    """Raised when caller input does not have the required shape."""


class LocationFormatError(InvalidInputError):
    """Raised when a location string is not in canonical form."""


class GroundSensorError(AirQualityError):
    """Raised for ground-sensor provider failures with category/code metadata."""

    def __init__(
        self,
        message: str,
        *,
        category: str = "provider",
        provider_code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.provider_code = provider_code


class ToolError(AirQualityError):
    """Raised when a generation tool is invoked with invalid arguments."""


class GenerationError(AirQualityError):
    """Raised when the generative backend fails or returns unusable output."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OutputValidationError(GenerationError):
    """Raised when generated output does not conform to the declared schema."""


class GenerationOverloadedError(GenerationError):
    """Raised once retries against an overloaded backend are exhausted."""
