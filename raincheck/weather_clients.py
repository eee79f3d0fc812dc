"""
Weather clients.

API logic stays out of the FastAPI routes so the dashboard controller and
the tests can use it directly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .errors import MalformedResponse, NetworkFailure, WeatherError
from .schemas import Coordinates, WeatherSnapshot
from .weather import normalize

logger = logging.getLogger(__name__)

CURRENT_FIELDS = "temperature_2m,is_day,precipitation,rain,showers,weather_code,wind_speed_10m"
HOURLY_FIELDS = "precipitation_probability,weather_code"


@dataclass(frozen=True)
class ResolvedLocation:
    """
    Minimal resolved location object produced by geocoding.
    """
    name: str
    country: str
    lat: float
    lon: float


class OpenMeteoClient:
    """
    Open-Meteo wrapper. No API key required.

    Endpoints used:
    - Forecast:
        /v1/forecast?latitude=...&longitude=...&current=...&hourly=...&forecast_days=1&timezone=auto
    - Geocoding:
        /v1/search?name=...&count=1
    """

    def __init__(
        self,
        base: str = "https://api.open-meteo.com/v1/forecast",
        geocoding_base: str = "https://geocoding-api.open-meteo.com/v1/search",
        timeout_s: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base = base
        self.geocoding_base = geocoding_base
        self.timeout_s = timeout_s
        # Tests swap in httpx.MockTransport here
        self.transport = transport

    async def _get(self, url: str, params: Dict[str, Any], what: str) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout_s, transport=self.transport) as client:
                r = await client.get(url, params=params)
        except httpx.HTTPError as e:
            logger.warning("%s request failed: %s", what, e)
            raise NetworkFailure(f"{what} failed: {e}") from e

        if r.status_code != 200:
            logger.warning("%s returned %s", what, r.status_code)
            raise NetworkFailure(f"{what} failed ({r.status_code}): {r.text}")

        try:
            return r.json()
        except ValueError as e:
            raise MalformedResponse(f"{what} returned invalid JSON.") from e

    async def forecast(self, coords: Coordinates) -> Dict[str, Any]:
        """
        Raw forecast payload for one day of hourly data at `coords`.
        """
        params = {
            "latitude": coords.lat,
            "longitude": coords.lng,
            "current": CURRENT_FIELDS,
            "hourly": HOURLY_FIELDS,
            "forecast_days": 1,
            "timezone": "auto",
        }
        return await self._get(self.base, params, "Weather fetch")

    async def snapshot(self, coords: Coordinates) -> WeatherSnapshot:
        """Fetch and normalize in one go."""
        return normalize(await self.forecast(coords))

    async def geocode(self, query: str) -> ResolvedLocation:
        """
        Resolve a place name ("Chiang Mai", "Paris") into coordinates.
        We select the top match.
        """
        raw = query.strip().strip("'\"")
        if not raw:
            raise WeatherError("Location name must not be empty.")

        data = await self._get(self.geocoding_base, {"name": raw, "count": 1}, "Geocoding")
        results = (data.get("results") if isinstance(data, dict) else None) or []
        if not results:
            raise WeatherError(
                f"Location '{raw}' not found. Try a more specific name or enter coordinates."
            )

        best = results[0]
        try:
            return ResolvedLocation(
                name=best.get("name", raw),
                country=best.get("country_code", ""),
                lat=float(best["latitude"]),
                lon=float(best["longitude"]),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponse("Geocoding result has no coordinates.") from e
