"""Weather data sources and the factory that picks one."""

from .base import WeatherClient
from .factory import build_weather_client
from .openweather_client import OpenWeatherClient, classify_exception, http_error_message

__all__ = [
    "build_weather_client",
    "WeatherClient",
    "OpenWeatherClient",
    "classify_exception",
    "http_error_message",
]
