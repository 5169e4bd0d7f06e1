"""Interface for weather data sources."""

from __future__ import annotations

from typing import Protocol

from weather_dashboard.domain import WeatherRecord


class WeatherClient(Protocol):
    """Interface for anything that can look up current weather by city name."""

    def fetch(self, city: str) -> WeatherRecord:
        """Return the current observation for `city`.

        Raises an `AppError` subclass on failure; never returns an error value.
        """
        ...
