from __future__ import annotations

import time
from typing import Any, Dict

import pytest

from raincheck.db import make_engine, make_session_factory
from raincheck.schemas import WeatherSnapshot
from raincheck.stores import AlertStore, LocationStore
from raincheck.weather import normalize

from .helpers import make_raw


@pytest.fixture
def raw_forecast() -> Dict[str, Any]:
    # 5, 10, ... 90, then flat at 90 for the rest of the day
    return make_raw([min(90, 5 * (i + 1)) for i in range(24)])


@pytest.fixture
def snapshot(raw_forecast) -> WeatherSnapshot:
    return normalize(raw_forecast)


@pytest.fixture
def sessions():
    return make_session_factory(make_engine("sqlite://"))


@pytest.fixture
def location_store(sessions) -> LocationStore:
    return LocationStore(sessions)


@pytest.fixture
def alert_store(sessions) -> AlertStore:
    return AlertStore(sessions)


@pytest.fixture
def bangkok_tz(monkeypatch):
    """Run with the machine clock at UTC+7 so local and UTC visibly differ."""
    monkeypatch.setenv("TZ", "Asia/Bangkok")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
