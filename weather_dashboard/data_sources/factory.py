"""Factory helpers for choosing a weather client at startup."""

from __future__ import annotations

from weather_dashboard import config
from weather_dashboard.data_sources.base import WeatherClient
from weather_dashboard.data_sources.openweather_client import OpenWeatherClient
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="data_sources/factory")


DEFAULT_SOURCE_NAME = "openweather"


def build_weather_client(settings: config.Settings | None = None) -> WeatherClient:
    """Instantiate the configured weather client."""
    settings = settings or config.settings
    source = (settings.weather_source or DEFAULT_SOURCE_NAME).lower()

    if source == "openweather":
        if not settings.openweather_api_key:
            logger.warning("openweather_api_key is empty; every fetch will fail with 401")
        logger.info("Using OpenWeatherMap data source", extra={"base_url": settings.openweather_base_url})
        return OpenWeatherClient(
            settings.openweather_api_key,
            base_url=settings.openweather_base_url,
            units=settings.units,
            timeout=settings.request_timeout_seconds,
        )

    raise ValueError(f"Unknown weather source '{source}'")
