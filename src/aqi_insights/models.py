"""Request-scoped typed models shared by the flows and the service."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

SPARKLINE_DAYS = 30
SPARKLINE_MIN_AQI = 0
SPARKLINE_MAX_AQI = 300
EXPECTED_POLLUTANTS = ("PM2.5", "O3", "NO2")
# Allowed drift between current_aqi and the dominant pollutant, for rounding.
CURRENT_AQI_TOLERANCE = 1.0

# (upper bound inclusive, label) in US EPA banding order.
_AQI_BANDS: tuple[tuple[int, str], ...] = (
    (50, "Good"),
    (100, "Moderate"),
    (150, "Unhealthy for Sensitive Groups"),
    (200, "Unhealthy"),
    (300, "Very Unhealthy"),
)


def aqi_category(aqi: float) -> str:
    """Map an AQI value to its US EPA category label."""
    for upper, label in _AQI_BANDS:
        if aqi <= upper:
            return label
    return "Hazardous"


class Location(BaseModel):
    """City/state/country triple as typed by the user."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    city: str = Field(min_length=1, description="City name")
    state: str = Field(min_length=1, description="State, province or region")
    country: str = Field(min_length=1, description="Country name")

    def label(self) -> str:
        return f"{self.city}, {self.state}, {self.country}"


class DateRange(BaseModel):
    """Inclusive calendar date range."""

    model_config = ConfigDict(frozen=True)

    start: date
    end: date

    @model_validator(mode="after")
    def validate_order(self) -> DateRange:
        if self.end < self.start:
            raise ValueError("Date range end must not be before its start.")
        return self

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1


class Pollutant(BaseModel):
    """Per-pollutant AQI with a short recommendation."""

    name: str = Field(description="Name of the pollutant (PM2.5, O3 or NO2).")
    aqi: float = Field(description="The AQI value for this specific pollutant.")
    recommendation: str = Field(description="A brief recommendation related to this pollutant.")

    @field_validator("aqi")
    @classmethod
    def validate_aqi(cls, value: float) -> float:
        if value < 0:
            raise ValueError("pollutant aqi must be >= 0.")
        return value


class HealthRecommendations(BaseModel):
    """Health advice split by audience."""

    general_public: str = Field(description="Health advice for the general public.")
    sensitive_groups: str = Field(
        description=(
            "Specific health advice for sensitive groups like children, the elderly, "
            "and people with respiratory issues."
        )
    )


class ForecastResult(BaseModel):
    """Validated structured forecast returned to the caller."""

    forecast: str = Field(
        description=(
            "A detailed 1-day air quality forecast summary that explains how wind and "
            "precipitation affect pollutant levels."
        )
    )
    current_aqi: float = Field(
        description="The current overall AQI: the highest of the individual pollutant AQIs."
    )
    pollutants: list[Pollutant] = Field(
        description="PM2.5, O3 and NO2 with their own AQI values and recommendations."
    )
    sparkline_data: list[int] = Field(
        description="Exactly 30 integers from 0 to 300: the forecasted AQI for the next 30 days."
    )
    health_recommendations: HealthRecommendations

    @field_validator("current_aqi")
    @classmethod
    def validate_current_aqi(cls, value: float) -> float:
        if value < 0:
            raise ValueError("current_aqi must be >= 0.")
        return value

    @field_validator("pollutants")
    @classmethod
    def validate_pollutants(cls, value: list[Pollutant]) -> list[Pollutant]:
        names = sorted(item.name.strip().upper() for item in value)
        if names != sorted(EXPECTED_POLLUTANTS):
            raise ValueError(
                f"pollutants must contain exactly {', '.join(EXPECTED_POLLUTANTS)}; "
                f"got {[item.name for item in value]}."
            )
        return value

    @field_validator("sparkline_data")
    @classmethod
    def validate_sparkline(cls, value: list[int]) -> list[int]:
        if len(value) != SPARKLINE_DAYS:
            raise ValueError(
                f"sparkline_data must have exactly {SPARKLINE_DAYS} values; got {len(value)}."
            )
        out_of_range = [v for v in value if not SPARKLINE_MIN_AQI <= v <= SPARKLINE_MAX_AQI]
        if out_of_range:
            raise ValueError(
                f"sparkline_data values must be within [{SPARKLINE_MIN_AQI}, "
                f"{SPARKLINE_MAX_AQI}]; got {out_of_range}."
            )
        return value

    @model_validator(mode="after")
    def validate_current_aqi_matches_pollutants(self) -> ForecastResult:
        # US EPA rule: the overall index is the highest pollutant sub-index.
        dominant = max(item.aqi for item in self.pollutants)
        if abs(self.current_aqi - dominant) > CURRENT_AQI_TOLERANCE:
            raise ValueError(
                f"current_aqi {self.current_aqi:g} must equal the highest pollutant aqi "
                f"({dominant:g}) within {CURRENT_AQI_TOLERANCE:g}."
            )
        return self

    @property
    def category(self) -> str:
        return aqi_category(self.current_aqi)


class HistoricalDataPoint(BaseModel):
    """One day of the historical series."""

    date: str = Field(description="The day label in 'Mon D' format, e.g. 'Jan 1'.")
    aqi: int = Field(description="The average AQI value for that day.")


class HistoricalAnalysis(BaseModel):
    """Narrative summary paired with the exact generated series."""

    summary: str
    chart_data: list[HistoricalDataPoint]


class NotificationStrategy(BaseModel):
    """Personalized alert-threshold strategy."""

    strategy: str = Field(
        description=(
            "A notification strategy with specific AQI thresholds for different pollutants "
            "and their health implications, tailored to the user's risk factors."
        )
    )
