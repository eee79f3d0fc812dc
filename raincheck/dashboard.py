"""
Dashboard controller.

Owns the AppState and runs three independent flows on the event loop:
- location feed -> cached list (and selection fallback)
- alert feed -> cached list
- weather refresh -> snapshot, then a separate insight task that only
  updates the insight card when it resolves
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, List, Optional, Set

from . import state as st
from .errors import GeolocationDenied, WeatherError
from .insight import InsightGenerator
from .schemas import AlertRecord, AppTab, Coordinates, LocationType, SavedLocation, WeatherSnapshot
from .stores import AlertStore, LocationStore
from .weather_clients import OpenMeteoClient

logger = logging.getLogger(__name__)


class Dashboard:
    def __init__(
        self,
        locations: LocationStore,
        alerts: AlertStore,
        weather: OpenMeteoClient,
        insight: InsightGenerator,
    ):
        self.locations = locations
        self.alerts = alerts
        self.weather = weather
        self.insight = insight
        self.state = st.AppState()
        self._tasks: Set[asyncio.Task] = set()

    # -------------------------
    # Lifecycle
    # -------------------------

    def _spawn(self, coro: Awaitable) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._log_failure)
        return task

    @staticmethod
    def _log_failure(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Background task %s failed", task.get_name(), exc_info=error)

    async def start(self) -> None:
        """Subscribe to both collections and load weather for the initial selection."""
        self._spawn(self._follow_locations())
        self._spawn(self._follow_alerts())
        self._spawn(self.refresh())

    async def stop(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    # -------------------------
    # Live feeds
    # -------------------------

    def _apply_locations(self, locations: List[SavedLocation]) -> None:
        generation = self.state.generation
        self.state = st.locations_received(self.state, locations)
        if self.state.generation != generation:
            logger.info("Selection moved to %s", self.state.current_location.name)
            self._spawn(self.refresh())

    async def _follow_locations(self) -> None:
        async for locations in self.locations.list():
            self._apply_locations(locations)

    def _apply_alerts(self, alerts: List[AlertRecord]) -> None:
        self.state = st.alerts_received(self.state, alerts)

    async def _follow_alerts(self) -> None:
        async for alerts in self.alerts.list():
            self._apply_alerts(alerts)

    def sync_locations(self) -> None:
        """Re-read the location store right away instead of waiting for the feed."""
        self._apply_locations(self.locations.snapshot())

    # -------------------------
    # Weather + insight
    # -------------------------

    async def refresh(self) -> Optional[asyncio.Task]:
        """
        Fetch weather for the current selection.

        Returns the insight task (not awaited) when the weather was applied,
        None when the fetch failed or a newer request superseded this one.
        """
        generation = self.state.generation
        location = self.state.current_location
        try:
            snapshot = await self.weather.snapshot(location.coords)
        except WeatherError as e:
            logger.warning("Weather fetch for %s failed: %s", location.name, e)
            self.state = st.weather_failed(self.state, generation, str(e))
            return None

        self.state = st.weather_loaded(self.state, generation, snapshot)
        if self.state.generation != generation:
            logger.debug("Dropping stale weather for %s", location.name)
            return None

        self.state = st.insight_started(self.state, generation)
        return self._spawn(self._load_insight(generation, snapshot, location.name))

    async def _load_insight(self, generation: int, snapshot: WeatherSnapshot, location_name: str) -> None:
        text = await self.insight.generate(snapshot, location_name)
        self.state = st.insight_loaded(self.state, generation, text)

    async def reload(self) -> Optional[asyncio.Task]:
        self.state = st.refresh_requested(self.state)
        return await self.refresh()

    async def select(self, location: SavedLocation) -> Optional[asyncio.Task]:
        self.state = st.location_selected(self.state, location)
        return await self.refresh()

    async def select_saved(self, location_id: str) -> Optional[asyncio.Task]:
        for location in self.state.locations:
            if location.id == location_id:
                return await self.select(location)
        raise WeatherError("Location not found.")

    def select_tab(self, tab: AppTab) -> None:
        self.state = st.select_tab(self.state, tab)

    # -------------------------
    # User actions
    # -------------------------

    async def add_location(
        self,
        name: str,
        coords: Optional[Coordinates] = None,
        type: LocationType = LocationType.other,
    ) -> str:
        """Save a location, geocoding the name when no coordinates were given."""
        name = name.strip()
        if not name:
            raise WeatherError("Location name must not be empty.")
        if coords is None:
            resolved = await self.weather.geocode(name)
            coords = Coordinates(lat=resolved.lat, lng=resolved.lon)

        doc_id = self.locations.add(name, coords, type)
        self.sync_locations()
        return doc_id

    def remove_location(self, location_id: str) -> None:
        self.locations.remove(location_id)
        generation = self.state.generation
        self.state = st.location_removed(self.state, location_id)
        if self.state.generation != generation:
            self._spawn(self.refresh())

    async def use_current_position(self, coords: Optional[Coordinates]) -> Optional[asyncio.Task]:
        """`coords` is None when the device refused or cannot report a position."""
        if coords is None:
            raise GeolocationDenied("Could not get location.")
        return await self.select(st.current_position(coords))

    def report(self, error: WeatherError) -> None:
        """Surface a recoverable failure as a one-shot notice."""
        self.state = st.notify(self.state, str(error))

    def take_notice(self) -> Optional[str]:
        notice = self.state.notice
        if notice is not None:
            self.state = st.clear_notice(self.state)
        return notice
