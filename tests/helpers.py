"""Payload builders and fake collaborators shared by the tests."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from raincheck.schemas import Coordinates, WeatherSnapshot
from raincheck.weather_clients import ResolvedLocation


def make_raw(probabilities: List[Optional[int]], code: int = 61, temperature: float = 28.5) -> Dict[str, Any]:
    """Open-Meteo shaped payload with one hourly slot per probability."""
    return {
        "latitude": 13.75,
        "longitude": 100.5,
        "current": {
            "time": "2025-06-01T09:00",
            "temperature_2m": temperature,
            "is_day": 1,
            "precipitation": 0.0,
            "rain": 0.0,
            "showers": 0.0,
            "weather_code": code,
            "wind_speed_10m": 12,
        },
        "hourly": {
            "time": [f"2025-06-{1 + i // 24:02d}T{i % 24:02d}:00" for i in range(len(probabilities))],
            "precipitation_probability": list(probabilities),
            "weather_code": [code] * len(probabilities),
        },
    }


class FakeWeather:
    """Stands in for OpenMeteoClient; returns canned snapshots per coordinate."""

    def __init__(self, default: Optional[WeatherSnapshot] = None, error: Optional[Exception] = None):
        self.default = default
        self.error = error
        self.by_coords: Dict[Coordinates, WeatherSnapshot] = {}
        self.calls: List[Coordinates] = []

    async def snapshot(self, coords: Coordinates) -> WeatherSnapshot:
        self.calls.append(coords)
        if self.error is not None:
            raise self.error
        return self.by_coords.get(coords, self.default)

    async def geocode(self, query: str) -> ResolvedLocation:
        return ResolvedLocation(name=query, country="TH", lat=18.7883, lon=98.9853)


class FakeInsight:
    def __init__(self, text: str = "Grab an umbrella, it's going to pour."):
        self.text = text
        self.calls: List[str] = []

    async def generate(self, snapshot: WeatherSnapshot, location_name: str) -> str:
        self.calls.append(location_name)
        return self.text


class FakeGemini:
    """Mimics `genai.Client` far enough for `client.aio.models.generate_content`."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.requests: List[Dict[str, Any]] = []
        self.aio = self
        self.models = self

    async def generate_content(self, model: str, contents: str) -> Any:
        self.requests.append({"model": model, "contents": contents})
        if self.error is not None:
            raise self.error
        return self.response
