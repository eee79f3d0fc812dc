"""
Pure weather helpers: provider payload -> WeatherSnapshot, plus the values
the dashboard derives from a snapshot. No I/O here.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Union

from pydantic import ValidationError

from .errors import MalformedResponse
from .schemas import CurrentConditions, HourlyForecast, WeatherSnapshot

HOURS = 24

# WMO Weather interpretation codes (WW)
WMO_CODES: Dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Fog",
    48: "Depositing rime fog",
    51: "Light Drizzle",
    53: "Moderate Drizzle",
    55: "Dense Drizzle",
    61: "Slight Rain",
    63: "Moderate Rain",
    65: "Heavy Rain",
    71: "Slight Snow",
    73: "Moderate Snow",
    75: "Heavy Snow",
    80: "Slight Rain Showers",
    81: "Moderate Rain Showers",
    82: "Violent Rain Showers",
    95: "Thunderstorm",
    96: "Thunderstorm with slight hail",
    99: "Thunderstorm with heavy hail",
}


def normalize(raw: Union[Mapping[str, Any], WeatherSnapshot]) -> WeatherSnapshot:
    """
    Convert an Open-Meteo forecast response into a WeatherSnapshot.

    - scalars are copied as-is, is_day becomes `is_day == 1`
    - hourly sequences are cut to the first 24 hours, and to the shorter of
      the two when the provider returns unequal lengths, so index i of both
      always refers to the same hour

    Raises MalformedResponse instead of returning a partial snapshot.
    """
    if isinstance(raw, WeatherSnapshot):
        raw = raw.to_raw()

    try:
        current = raw["current"]
        hourly = raw["hourly"]
        temperature = current["temperature_2m"]
        code = current["weather_code"]
        wind = current["wind_speed_10m"]
        is_day = current["is_day"]
        times = hourly["time"]
        probabilities = hourly["precipitation_probability"]
    except (KeyError, TypeError) as e:
        raise MalformedResponse(f"Forecast payload is missing field {e}.") from e

    if not isinstance(times, (list, tuple)) or not isinstance(probabilities, (list, tuple)):
        raise MalformedResponse("Forecast hourly data is not a list.")

    n = min(HOURS, len(times), len(probabilities))
    try:
        return WeatherSnapshot(
            current=CurrentConditions(
                temperature_c=temperature,
                condition_code=code,
                wind_speed_kmh=wind,
                is_day=is_day == 1,
            ),
            hourly=HourlyForecast(
                timestamps=tuple(times[:n]),
                # Open-Meteo sends null for hours it has no estimate for
                precipitation_probability_pct=tuple(0 if p is None else p for p in probabilities[:n]),
            ),
        )
    except ValidationError as e:
        raise MalformedResponse(f"Forecast payload has invalid values: {e.error_count()} error(s).") from e


def describe(code: int) -> str:
    """Human-readable label for a WMO code; 'Unknown' for anything off the table."""
    return WMO_CODES.get(code, "Unknown")


def is_rainy(code: int) -> bool:
    """Drizzle and everything wetter (codes above 50) get the rain icon."""
    return code > 50


def peak_near_term_precipitation(snapshot: WeatherSnapshot, window_hours: int) -> int:
    """Highest rain chance over the first `window_hours` hours, 0 when there is nothing to look at."""
    if window_hours <= 0:
        return 0
    return max(snapshot.hourly.precipitation_probability_pct[:window_hours], default=0)
