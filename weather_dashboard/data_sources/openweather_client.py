"""Client for the OpenWeatherMap current-weather endpoint."""
from __future__ import annotations

from typing import Optional

import requests
from pydantic import ValidationError

from utils.logging_utils import get_tagged_logger, mask_url_secrets
from weather_dashboard.data_sources.base import WeatherClient
from weather_dashboard.domain import WeatherRecord
from weather_dashboard.errors import AppError, NetworkError, UnknownError, is_name_resolution_failure
from weather_dashboard.models import WeatherResponse

logger = get_tagged_logger(__name__, tag="openweather_client")

OPENWEATHER_BASE_URL = "https://api.openweathermap.org/data/2.5"

INVALID_API_KEY_MESSAGE = (
    "Invalid API key. Please verify your OpenWeatherMap API key is correct and activated. "
    "New keys may take up to 2 hours to activate."
)
CITY_NOT_FOUND_MESSAGE = "City not found. Please check the city name."
RATE_LIMIT_MESSAGE = "API rate limit exceeded. Please try again later."
NO_INTERNET_MESSAGE = (
    "No internet connection. Please check your network settings and ensure the device has internet access."
)
TIMEOUT_MESSAGE = "Connection timeout. Please check your internet connection and try again."
IO_FALLBACK_DETAIL = "Unable to connect to the server. Please check your internet connection."
UNKNOWN_MESSAGE = "Unknown error occurred"


def http_error_message(status_code: int, reason: str) -> str:
    """Map an HTTP status onto the message shown to the user."""
    if status_code == 401:
        return INVALID_API_KEY_MESSAGE
    if status_code == 404:
        return CITY_NOT_FOUND_MESSAGE
    if status_code == 429:
        return RATE_LIMIT_MESSAGE
    return f"HTTP error {status_code}: {reason}"


def classify_exception(exc: BaseException) -> AppError:
    """Translate a failure raised while fetching into the AppError taxonomy.

    Order matters: requests' ConnectTimeout is both a ConnectionError and a
    Timeout, and DNS failures surface as ConnectionError.
    """
    if isinstance(exc, AppError):
        return exc
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        status = exc.response.status_code
        reason = exc.response.reason or ""
        return NetworkError(http_error_message(status, reason), cause=exc, status_code=status)
    if is_name_resolution_failure(exc):
        return NetworkError(NO_INTERNET_MESSAGE, cause=exc, status_code=0)
    if isinstance(exc, requests.Timeout):
        return NetworkError(TIMEOUT_MESSAGE, cause=exc, status_code=0)
    if isinstance(exc, requests.JSONDecodeError):
        return UnknownError(f"Malformed weather response: {exc}", cause=exc, status_code=0)
    if isinstance(exc, (requests.RequestException, OSError)):
        detail = str(exc) or IO_FALLBACK_DETAIL
        return NetworkError(f"Network error: {detail}", cause=exc, status_code=0)
    return UnknownError(str(exc) or UNKNOWN_MESSAGE, cause=exc, status_code=0)


class OpenWeatherClient(WeatherClient):
    """Fetch and normalize current weather for a city name.

    Exactly one HTTP request per `fetch`; failures are never retried here.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = OPENWEATHER_BASE_URL,
        units: str = "metric",
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.api_key = api_key
        self.url = f"{base_url.rstrip('/')}/weather"
        self.units = units
        self.timeout = timeout
        self.session = session or requests.Session()

    def fetch(self, city: str) -> WeatherRecord:
        """GET /weather?q={city}&appid={key}&units={units} and normalize the payload."""
        params = {"q": city, "appid": self.api_key, "units": self.units}
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout)
            resolved_url = resp.url if isinstance(getattr(resp, "url", None), str) else self.url
            logger.debug("OpenWeather GET %s -> %s", mask_url_secrets(resolved_url), resp.status_code)
            resp.raise_for_status()
            payload = resp.json()
        except Exception as exc:
            error = classify_exception(exc)
            logger.warning(
                "OpenWeather fetch failed",
                extra={"city": city, "status_code": error.status_code, "error": error.message},
            )
            if error is exc:
                raise
            raise error from exc

        try:
            record = WeatherResponse.model_validate(payload).to_record()
        except ValidationError as exc:
            logger.warning("OpenWeather payload did not match schema", extra={"city": city, "error": str(exc)})
            raise UnknownError(f"Malformed weather response for {city}", cause=exc, status_code=0) from exc

        logger.info("Fetched weather for %s: %.1f°C %s", record.city_name, record.temperature, record.condition)
        return record
