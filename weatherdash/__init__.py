"""Weather dashboard gateway: OpenWeatherMap proxy with per-client rate limiting."""

__version__ = "0.1.0"
