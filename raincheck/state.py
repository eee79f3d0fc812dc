"""
Dashboard state and its transitions.

AppState is an immutable value; every function below takes a state and
returns a new one. Weather and insight results carry the generation they
were requested under and are dropped when a newer request has started.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Sequence, Tuple

from .schemas import AlertRecord, AppTab, Coordinates, LocationType, SavedLocation, WeatherSnapshot

# Shown until the user saves a location of their own.
DEFAULT_LOCATION = SavedLocation(
    id="default",
    name="Bangkok (Default)",
    coords=Coordinates(lat=13.7563, lng=100.5018),
    type=LocationType.other,
)

CURRENT_POSITION_ID = "current"


def current_position(coords: Coordinates) -> SavedLocation:
    """Transient location built from the device position. Never stored."""
    return SavedLocation(id=CURRENT_POSITION_ID, name="Current Location", coords=coords, type=LocationType.other)


@dataclass(frozen=True)
class AppState:
    active_tab: AppTab = AppTab.dashboard
    locations: Tuple[SavedLocation, ...] = ()
    current_location: SavedLocation = DEFAULT_LOCATION
    weather: Optional[WeatherSnapshot] = None
    weather_loading: bool = True
    insight: str = ""
    insight_loading: bool = False
    alerts: Tuple[AlertRecord, ...] = ()
    notice: Optional[str] = None
    generation: int = 0


def _fallback(locations: Sequence[SavedLocation]) -> SavedLocation:
    return locations[0] if locations else DEFAULT_LOCATION


def _with_selection(state: AppState, location: SavedLocation) -> AppState:
    return replace(
        state,
        current_location=location,
        generation=state.generation + 1,
        weather_loading=True,
        insight="",
        insight_loading=False,
    )


def select_tab(state: AppState, tab: AppTab) -> AppState:
    return replace(state, active_tab=AppTab(tab))


def location_selected(state: AppState, location: SavedLocation) -> AppState:
    """User picked a location: show it on the dashboard and start a new request."""
    return replace(_with_selection(state, location), active_tab=AppTab.dashboard)


def refresh_requested(state: AppState) -> AppState:
    return _with_selection(state, state.current_location)


def locations_received(state: AppState, locations: Sequence[SavedLocation]) -> AppState:
    """
    Replace the cached list with what the store just pushed.

    The selection moves when it is the default and real locations exist, or
    when the selected saved location is gone. The device position is left alone.
    """
    locations = tuple(locations)
    state = replace(state, locations=locations)
    selected = state.current_location

    if selected.id == CURRENT_POSITION_ID:
        return state
    if selected.id == DEFAULT_LOCATION.id:
        if locations:
            return _with_selection(state, locations[0])
        return state
    if not any(loc.id == selected.id for loc in locations):
        return _with_selection(state, _fallback(locations))
    return state


def location_removed(state: AppState, location_id: str) -> AppState:
    """A delete succeeded; move off the removed location if it was selected."""
    remaining = tuple(loc for loc in state.locations if loc.id != location_id)
    state = replace(state, locations=remaining)
    if state.current_location.id != location_id:
        return state
    return _with_selection(state, _fallback(remaining))


def alerts_received(state: AppState, alerts: Sequence[AlertRecord]) -> AppState:
    return replace(state, alerts=tuple(alerts))


def weather_loaded(state: AppState, generation: int, snapshot: WeatherSnapshot) -> AppState:
    if generation != state.generation:
        return state
    return replace(state, weather=snapshot, weather_loading=False)


def weather_failed(state: AppState, generation: int, message: str) -> AppState:
    """Keep whatever was displayed before; just tell the user."""
    if generation != state.generation:
        return state
    return replace(state, weather_loading=False, notice=message)


def insight_started(state: AppState, generation: int) -> AppState:
    if generation != state.generation:
        return state
    return replace(state, insight="", insight_loading=True)


def insight_loaded(state: AppState, generation: int, text: str) -> AppState:
    if generation != state.generation:
        return state
    return replace(state, insight=text, insight_loading=False)


def notify(state: AppState, message: str) -> AppState:
    return replace(state, notice=message)


def clear_notice(state: AppState) -> AppState:
    return replace(state, notice=None)
