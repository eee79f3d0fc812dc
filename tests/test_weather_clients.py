from __future__ import annotations

import httpx
import pytest

from raincheck.errors import MalformedResponse, NetworkFailure, WeatherError
from raincheck.schemas import Coordinates
from raincheck.weather_clients import OpenMeteoClient

from .helpers import make_raw

BANGKOK = Coordinates(lat=13.7563, lng=100.5018)


def client_for(handler) -> OpenMeteoClient:
    return OpenMeteoClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_forecast_requests_fixed_fields() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json=make_raw([10, 20]))

    snapshot = await client_for(handler).snapshot(BANGKOK)

    assert seen["latitude"] == "13.7563"
    assert seen["longitude"] == "100.5018"
    assert seen["current"] == "temperature_2m,is_day,precipitation,rain,showers,weather_code,wind_speed_10m"
    assert seen["hourly"] == "precipitation_probability,weather_code"
    assert seen["forecast_days"] == "1"
    assert seen["timezone"] == "auto"
    assert snapshot.hourly.precipitation_probability_pct == (10, 20)


@pytest.mark.asyncio
async def test_forecast_non_200_is_network_failure() -> None:
    client = client_for(lambda request: httpx.Response(503, text="down"))

    with pytest.raises(NetworkFailure):
        await client.forecast(BANGKOK)


@pytest.mark.asyncio
async def test_forecast_transport_error_is_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("no route", request=request)

    with pytest.raises(NetworkFailure):
        await client_for(handler).forecast(BANGKOK)


@pytest.mark.asyncio
async def test_snapshot_with_missing_fields_is_malformed() -> None:
    client = client_for(lambda request: httpx.Response(200, json={"current": {}}))

    with pytest.raises(MalformedResponse):
        await client.snapshot(BANGKOK)


@pytest.mark.asyncio
async def test_forecast_invalid_json_is_malformed() -> None:
    client = client_for(lambda request: httpx.Response(200, text="<html>"))

    with pytest.raises(MalformedResponse):
        await client.forecast(BANGKOK)


@pytest.mark.asyncio
async def test_geocode_picks_top_match() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["name"] == "Chiang Mai"
        return httpx.Response(200, json={"results": [
            {"name": "Chiang Mai", "country_code": "TH", "latitude": 18.79, "longitude": 98.98},
            {"name": "Chiang Mai Airport", "country_code": "TH", "latitude": 18.77, "longitude": 98.96},
        ]})

    resolved = await client_for(handler).geocode("  'Chiang Mai' ")

    assert resolved.name == "Chiang Mai"
    assert resolved.country == "TH"
    assert (resolved.lat, resolved.lon) == (18.79, 98.98)


@pytest.mark.asyncio
async def test_geocode_no_results() -> None:
    client = client_for(lambda request: httpx.Response(200, json={"generationtime_ms": 0.5}))

    with pytest.raises(WeatherError, match="not found"):
        await client.geocode("Atlantis")
