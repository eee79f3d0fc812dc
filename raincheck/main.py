"""
FastAPI entrypoint.

This file focuses on:
- routing
- request/response handling
- wiring together stores + clients + templates
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request, Depends, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.engine import Engine

from .charts import rain_chart
from .dashboard import Dashboard
from .db import make_engine, make_session_factory
from .errors import WeatherError
from .insight import InsightGenerator
from .schemas import AppTab, Coordinates, LocationCreate, LocationType
from .settings import Settings, settings as default_settings
from .stores import AlertStore, LocationStore
from .weather import describe, is_rainy, peak_near_term_precipitation
from .weather_clients import OpenMeteoClient

logger = logging.getLogger(__name__)

HERE = Path(__file__).parent
templates = Jinja2Templates(directory=str(HERE / "templates"))


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def get_dashboard(request: Request) -> Dashboard:
    """FastAPI dependency: the single dashboard built at startup."""
    return request.app.state.dashboard


def parse_coords(lat: Optional[str], lng: Optional[str]) -> Optional[Coordinates]:
    """Form fields -> Coordinates; both blank means 'not given'."""
    if not (lat or "").strip() and not (lng or "").strip():
        return None
    try:
        return Coordinates(lat=float(lat), lng=float(lng))
    except (TypeError, ValueError, ValidationError) as e:
        raise WeatherError(
            "Invalid coordinates. Latitude must be between -90 and 90, longitude between -180 and 180."
        ) from e


def to_tab(request: Request, tab: AppTab, dashboard: Dashboard, status_code: int = 200) -> HTMLResponse:
    """Render one of the three views with the shared tab bar."""
    dashboard.select_tab(tab)
    state = dashboard.state
    weather = state.weather
    window = request.app.state.settings.near_term_window_hours
    context = {
        "app_name": request.app.state.settings.app_name,
        "tab": tab.value,
        "tabs": [t.value for t in AppTab],
        "state": state,
        "notice": dashboard.take_notice(),
        "weather": weather,
        "condition": describe(weather.current.condition_code) if weather else None,
        "rainy": is_rainy(weather.current.condition_code) if weather else False,
        "near_term_peak": peak_near_term_precipitation(weather, window) if weather else 0,
        "bars": rain_chart(weather.hourly) if weather else [],
    }
    return templates.TemplateResponse(request, f"{tab.value}.html", context, status_code=status_code)


def back_to(tab: AppTab) -> RedirectResponse:
    # 303 so the browser follows a POST with a GET
    return RedirectResponse(url=f"/{tab.value}", status_code=303)


def create_app(
    config: Optional[Settings] = None,
    *,
    engine: Optional[Engine] = None,
    weather_client: Optional[OpenMeteoClient] = None,
    insight: Optional[InsightGenerator] = None,
) -> FastAPI:
    """
    Build the app. Tests pass an in-memory engine and fake clients; the
    defaults come from settings.
    """
    config = config or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        sessions = make_session_factory(engine or make_engine(config.database_url))
        dashboard = Dashboard(
            locations=LocationStore(sessions, config.store_poll_seconds),
            alerts=AlertStore(sessions, config.store_poll_seconds),
            weather=weather_client or OpenMeteoClient(
                base=config.open_meteo_base,
                geocoding_base=config.geocoding_base,
                timeout_s=config.http_timeout_seconds,
            ),
            insight=insight or InsightGenerator(config.gemini_api_key, config.gemini_model),
        )
        app.state.sessions = sessions
        app.state.dashboard = dashboard
        await dashboard.start()
        logger.info("%s started", config.app_name)
        yield
        await dashboard.stop()

    app = FastAPI(title=config.app_name, lifespan=lifespan)
    app.state.settings = config
    app.mount("/static", StaticFiles(directory=str(HERE / "static")), name="static")

    # -------------------------
    # UI routes
    # -------------------------

    @app.get("/")
    async def home():
        return back_to(AppTab.dashboard)

    @app.get("/dashboard", response_class=HTMLResponse)
    async def dashboard_page(request: Request, dashboard: Dashboard = Depends(get_dashboard)):
        """Current conditions, insight card and the 24h rain chart."""
        return to_tab(request, AppTab.dashboard, dashboard)

    @app.get("/locations", response_class=HTMLResponse)
    async def locations_page(request: Request, dashboard: Dashboard = Depends(get_dashboard)):
        return to_tab(request, AppTab.locations, dashboard)

    @app.get("/alerts", response_class=HTMLResponse)
    async def alerts_page(request: Request, dashboard: Dashboard = Depends(get_dashboard)):
        return to_tab(request, AppTab.alerts, dashboard)

    @app.post("/refresh")
    async def refresh(dashboard: Dashboard = Depends(get_dashboard)):
        await dashboard.reload()
        return back_to(AppTab.dashboard)

    @app.post("/locations")
    async def add_location_form(
        name: str = Form(""),
        lat: str = Form(""),
        lng: str = Form(""),
        type: LocationType = Form(LocationType.other),
        dashboard: Dashboard = Depends(get_dashboard),
    ):
        """Add a location; an empty name is treated like a cancelled prompt."""
        if not name.strip():
            return back_to(AppTab.locations)
        try:
            await dashboard.add_location(name, parse_coords(lat, lng), type)
        except WeatherError as e:
            logger.error("Error adding location: %s", e)
            dashboard.report(WeatherError(f"Failed to save location. {e}"))
        return back_to(AppTab.locations)

    @app.post("/locations/current")
    async def use_current_position(
        lat: str = Form(""),
        lng: str = Form(""),
        error: str = Form(""),
        dashboard: Dashboard = Depends(get_dashboard),
    ):
        """The browser posts its Geolocation API result, or the error it got instead."""
        try:
            coords = None if error else parse_coords(lat, lng)
            await dashboard.use_current_position(coords)
        except WeatherError as e:
            logger.warning("Geolocation failed: %s %s", e, error)
            dashboard.report(e)
            return back_to(AppTab.locations)
        return back_to(AppTab.dashboard)

    @app.post("/locations/{location_id}/select")
    async def select_location(location_id: str, dashboard: Dashboard = Depends(get_dashboard)):
        try:
            await dashboard.select_saved(location_id)
        except WeatherError as e:
            dashboard.report(e)
            return back_to(AppTab.locations)
        return back_to(AppTab.dashboard)

    @app.post("/locations/{location_id}/delete")
    async def delete_location_form(
        location_id: str,
        confirm: str = Form(""),
        dashboard: Dashboard = Depends(get_dashboard),
    ):
        """Delete requires confirm=yes (the page asks the user first)."""
        if confirm != "yes":
            return back_to(AppTab.locations)
        try:
            dashboard.remove_location(location_id)
        except WeatherError as e:
            logger.error("Error deleting location: %s", e)
            dashboard.report(WeatherError("Failed to delete location."))
        return back_to(AppTab.locations)

    # -------------------------
    # JSON APIs
    # -------------------------

    @app.get("/health")
    async def health():
        return {"ok": True}

    @app.get("/api/state")
    async def api_state(dashboard: Dashboard = Depends(get_dashboard)):
        s = dashboard.state
        return {
            "active_tab": s.active_tab.value,
            "current_location": s.current_location.model_dump(mode="json"),
            "weather_loading": s.weather_loading,
            "insight": s.insight,
            "insight_loading": s.insight_loading,
            "notice": s.notice,
        }

    @app.get("/api/weather")
    async def api_weather(request: Request, dashboard: Dashboard = Depends(get_dashboard)):
        """Last applied snapshot plus the values the dashboard derives from it."""
        weather = dashboard.state.weather
        if weather is None:
            raise HTTPException(status_code=404, detail="Weather not loaded yet")
        window = request.app.state.settings.near_term_window_hours
        return {
            "location": dashboard.state.current_location.model_dump(mode="json"),
            "snapshot": weather.model_dump(mode="json"),
            "condition": describe(weather.current.condition_code),
            "near_term_peak": peak_near_term_precipitation(weather, window),
        }

    @app.get("/api/locations")
    async def api_list_locations(dashboard: Dashboard = Depends(get_dashboard)):
        return [loc.model_dump(mode="json") for loc in dashboard.locations.snapshot()]

    @app.post("/api/locations")
    async def api_add_location(payload: LocationCreate, dashboard: Dashboard = Depends(get_dashboard)):
        try:
            doc_id = await dashboard.add_location(payload.name, payload.coords, payload.type)
        except WeatherError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"id": doc_id}

    @app.delete("/api/locations/{location_id}")
    async def api_delete_location(location_id: str, dashboard: Dashboard = Depends(get_dashboard)):
        try:
            dashboard.remove_location(location_id)
        except WeatherError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"ok": True}

    @app.get("/api/alerts")
    async def api_list_alerts(dashboard: Dashboard = Depends(get_dashboard)):
        return [a.model_dump(mode="json") for a in dashboard.alerts.snapshot()]

    return app


configure_logging(default_settings.log_level)
app = create_app()
