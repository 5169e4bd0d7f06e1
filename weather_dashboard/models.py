"""Pydantic schema for the OpenWeatherMap current-weather payload."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from weather_dashboard.domain import WeatherRecord

UNKNOWN_CONDITION = "Unknown"


class _PayloadModel(BaseModel):
    """Tolerate the many extra fields OpenWeatherMap returns."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MainBlock(_PayloadModel):
    temperature: float = Field(alias="temp")
    humidity: int = Field(ge=0, le=100)


class ConditionBlock(_PayloadModel):
    condition: str = Field(alias="main")
    description: str = ""


class WindBlock(_PayloadModel):
    speed: float = Field(ge=0)


class WeatherResponse(_PayloadModel):
    """Subset of `GET /weather` that the dashboard displays."""
    city_name: str = Field(alias="name")
    main: MainBlock
    weather: List[ConditionBlock] = Field(default_factory=list)
    wind: WindBlock
    timestamp: int = Field(alias="dt")

    def to_record(self) -> WeatherRecord:
        """Normalize into a WeatherRecord using the first listed condition."""
        first = self.weather[0] if self.weather else None
        return WeatherRecord(
            city_name=self.city_name,
            temperature=self.main.temperature,
            condition=first.condition if first else UNKNOWN_CONDITION,
            description=first.description if first else "",
            humidity=self.main.humidity,
            wind_speed=self.wind.speed,
            last_updated=self.timestamp,
        )
