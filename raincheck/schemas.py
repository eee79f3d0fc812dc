"""
Pydantic schemas.

These are the app's internal model as well as the contract of the JSON
endpoints. Everything the dashboard renders is immutable once built.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class LocationType(str, Enum):
    home = "home"
    work = "work"
    other = "other"


class Severity(str, Enum):
    info = "info"
    warning = "warning"
    critical = "critical"


class AppTab(str, Enum):
    """Which view is selected. Pure UI state, never persisted."""
    dashboard = "dashboard"
    locations = "locations"
    alerts = "alerts"


class Coordinates(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)


class SavedLocation(BaseModel):
    """A named place. Replaced wholesale on edit, never mutated."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = Field(..., min_length=1)
    coords: Coordinates
    type: LocationType = LocationType.other


class LocationCreate(BaseModel):
    """
    Payload for saving a location.
    Coordinates are optional: without them the name is geocoded.
    """
    name: str = Field(..., min_length=1, max_length=255)
    coords: Optional[Coordinates] = None
    type: LocationType = LocationType.other


class CurrentConditions(BaseModel):
    model_config = ConfigDict(frozen=True)

    temperature_c: float
    condition_code: int
    wind_speed_kmh: float
    is_day: bool


# Rain chance as sent by the provider: whole percent, 0-100
Percent = Annotated[int, Field(ge=0, le=100)]


class HourlyForecast(BaseModel):
    """Index i of both sequences describes the same hour."""
    model_config = ConfigDict(frozen=True)

    timestamps: Tuple[str, ...] = ()
    precipitation_probability_pct: Tuple[Percent, ...] = ()

    @model_validator(mode="after")
    def _aligned(self) -> "HourlyForecast":
        if len(self.timestamps) != len(self.precipitation_probability_pct):
            raise ValueError("hourly timestamps and probabilities must have the same length")
        if len(self.timestamps) > 24:
            raise ValueError("hourly forecast holds at most 24 hours")
        return self


class WeatherSnapshot(BaseModel):
    """
    Canonical weather record.
    Built fresh on every fetch and replaced wholesale, never merged.
    """
    model_config = ConfigDict(frozen=True)

    current: CurrentConditions
    hourly: HourlyForecast

    def to_raw(self) -> Dict[str, Any]:
        """Render back into the provider's response shape."""
        return {
            "current": {
                "temperature_2m": self.current.temperature_c,
                "weather_code": self.current.condition_code,
                "wind_speed_10m": self.current.wind_speed_kmh,
                "is_day": 1 if self.current.is_day else 0,
            },
            "hourly": {
                "time": list(self.hourly.timestamps),
                "precipitation_probability": list(self.hourly.precipitation_probability_pct),
            },
        }


def to_utc(value: datetime) -> datetime:
    """
    Naive UTC, the one convention the store uses.
    Naive input is taken as local time, aware input is converted.
    """
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@dataclass(frozen=True)
class InstantTimestamp:
    """Alert time stored as a real instant (naive UTC)."""
    value: datetime

    def display(self) -> str:
        return self.value.replace(tzinfo=timezone.utc).astimezone().strftime("%Y-%m-%d %H:%M")


@dataclass(frozen=True)
class TextTimestamp:
    """Alert time the producer already formatted."""
    value: str

    def display(self) -> str:
        return self.value


AlertTimestamp = Union[InstantTimestamp, TextTimestamp]


def alert_timestamp(at: Optional[datetime], text: Optional[str]) -> AlertTimestamp:
    """Pick the variant a stored alert carries. Missing values display as ''."""
    if at is not None:
        return InstantTimestamp(at)
    return TextTimestamp(text or "")


class AlertRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    message: str
    severity: Severity = Severity.info
    timestamp: str
