"""Data models for the flame weather service."""

from datetime import datetime
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Language(str, Enum):
    """Display language; also sent to the geocoding search API."""
    ZH = "zh"
    EN = "en"


class LocationMode(str, Enum):
    """Whether the active coordinate follows positioning or a user selection."""
    AUTOMATIC = "automatic"
    MANUAL = "manual"


class Coordinate(BaseModel):
    """Geographic position in decimal degrees."""
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90, le=90, description="Latitude in decimal degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in decimal degrees")

    @property
    def is_sentinel(self) -> bool:
        """True for the (0, 0) placeholder used when no position was configured."""
        return self.latitude == 0.0 and self.longitude == 0.0


class LocationCandidate(BaseModel):
    """A place returned by geocoding search."""
    model_config = ConfigDict(frozen=True)

    display_name: str = Field(..., description="Place name")
    detail: str = Field("", description="Region and country")
    coordinate: Coordinate


class FailureReason(str, Enum):
    PERMISSION_UNAVAILABLE = "permission_unavailable"
    NO_LOCATION_AVAILABLE = "no_location_available"
    SUPERSEDED = "superseded"


class LocationFailure(BaseModel):
    """Outcome of a location resolution that produced no coordinate."""
    model_config = ConfigDict(frozen=True)

    reason: FailureReason


class RawForecastPoint(BaseModel):
    """One timestamped entry of the upstream time series."""
    model_config = ConfigDict(frozen=True)

    timestamp_utc: datetime
    air_temperature_c: float
    wind_speed_ms: float
    precipitation_mm: Optional[float] = Field(None, description="next_1_hours precipitation amount")
    condition_code: Optional[str] = Field(None, description="next_1_hours symbol code")
    daily_condition_code: Optional[str] = Field(None, description="next_6_hours symbol code")


class DailyForecast(BaseModel):
    """Representative forecast for one future local calendar day."""
    model_config = ConfigDict(frozen=True)

    local_date: str = Field(..., description="Local date in MM-DD format")
    temperature_label: str
    condition_code: Optional[str] = None


class WeatherSnapshot(BaseModel):
    """Display-ready weather for one location, replaced as a whole."""
    model_config = ConfigDict(frozen=True)

    location_name: str
    coordinate: Coordinate
    current_temperature_c: float
    current_temperature_label: str
    wind_label: str
    precipitation_label: str
    aqi_label: str
    current_condition_code: Optional[str] = None
    forecast: Tuple[DailyForecast, ...] = ()


class YrTimeseriesEntry(BaseModel):
    """Raw timeseries entry from the MET Norway API."""
    time: str = Field(..., description="ISO timestamp")
    data: dict = Field(..., description="Weather data")


class YrProperties(BaseModel):
    timeseries: List[YrTimeseriesEntry] = Field(..., min_length=1)


class YrForecastResponse(BaseModel):
    """Raw response from the MET Norway Locationforecast API."""
    type: str = Field(..., description="GeoJSON type")
    geometry: dict = Field(..., description="Location geometry")
    properties: YrProperties
