"""Application configuration pulled from environment variables via pydantic."""
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
from weather_dashboard.domain import DEFAULT_CITIES

logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for the weather dashboard."""
    model_config = SettingsConfigDict(env_prefix="DASHBOARD_", extra="ignore")

    weather_source: str = "openweather"  # options: openweather
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/data/2.5"
    units: str = "metric"
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    refresh_interval_seconds: float = Field(default=30.0, gt=0)
    default_cities: List[str] = Field(default_factory=lambda: list(DEFAULT_CITIES), min_length=1)

    search_min_query_length: int = Field(default=2, ge=1)

    connectivity_probe: str = "socket"  # options: socket, manual
    connectivity_host: str = "1.1.1.1"
    connectivity_port: int = 53
    connectivity_timeout_seconds: float = Field(default=3.0, gt=0)
    connectivity_poll_seconds: float = Field(default=5.0, gt=0)

    api_key: str | None = None
    api_key_redis_url: str | None = None
    api_key_redis_set: str = "api_keys"

    log_level: str = "INFO"

    @field_validator("openweather_base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs to avoid double slashes."""
        return str(v).rstrip("/")

    @field_validator("default_cities", mode="after")
    @classmethod
    def drop_blank_cities(cls, v: List[str]) -> List[str]:
        """Strip whitespace and reject a list with no usable city."""
        cities = [c.strip() for c in v if c and c.strip()]
        if not cities:
            raise ValueError("default_cities must contain at least one city name")
        return cities


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4, exclude={'openweather_api_key', 'api_key'})}")
