"""
Error taxonomy.

Every failure in the app is locally recoverable, so everything derives from
WeatherError and routes catch that one type at the boundary.
"""


class WeatherError(RuntimeError):
    """Raised for user-facing weather lookup failures."""
    pass


class NetworkFailure(WeatherError):
    """Forecast fetch, geocoding or a store write failed."""


class MalformedResponse(WeatherError):
    """The forecast payload is missing fields we need."""


class InsightUnavailable(WeatherError):
    """The language model could not be reached or produced nothing usable."""


class GeolocationDenied(WeatherError):
    """The device refused to share (or has no) position."""
