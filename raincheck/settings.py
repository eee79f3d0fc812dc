from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Centralized configuration.

    Loaded from:
    - environment variables
    - .env file (if present)

    Nothing here is required: without a Gemini key the dashboard still works
    and the insight card shows its fallback text.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "Rain Alert"

    # Any SQLAlchemy URL; SQLite keeps local runs dependency-free.
    database_url: str = "sqlite:///raincheck.sqlite3"

    # Gemini credentials. API_KEY is accepted for compatibility with older deployments.
    gemini_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("gemini_api_key", "api_key"),
    )
    gemini_model: str = "gemini-2.5-flash"

    open_meteo_base: str = "https://api.open-meteo.com/v1/forecast"
    geocoding_base: str = "https://geocoding-api.open-meteo.com/v1/search"
    http_timeout_seconds: float = 10.0

    # How often live feeds re-read the store to pick up writes from other processes.
    # 0 disables polling; in-process writes still wake subscribers immediately.
    store_poll_seconds: float = 5.0

    # Window used for the "Precip" metric on the dashboard.
    near_term_window_hours: int = 3

    log_level: str = "INFO"


settings = Settings()
