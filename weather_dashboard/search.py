"""City search on top of the weather client."""

from __future__ import annotations

from typing import List

from utils.logging_utils import get_tagged_logger
from weather_dashboard.connectivity.base import ConnectivityProbe
from weather_dashboard.data_sources.base import WeatherClient
from weather_dashboard.domain import WeatherRecord
from weather_dashboard.errors import AppError, NetworkError

logger = get_tagged_logger(__name__, tag="search")

MIN_QUERY_LENGTH = 2
OFFLINE_SEARCH_MESSAGE = "No internet connection available"
SEARCH_FAILED_MESSAGE = "Error searching for city"


class SearchCoordinator:
    """Validate a city name by fetching its weather once.

    A miss and a failed lookup both come back as an empty list. Only
    being offline, or the client faulting outright, raises.
    """

    def __init__(self, client: WeatherClient, probe: ConnectivityProbe, *,
                 min_query_length: int = MIN_QUERY_LENGTH) -> None:
        self.client = client
        self.probe = probe
        self.min_query_length = min_query_length

    def search(self, query: str) -> List[WeatherRecord]:
        """Return at most one record whose city matches `query`.

        Raises NetworkError when offline (no request is made) or when the
        client raises something outside the AppError taxonomy.
        """
        query = (query or "").strip()
        if len(query) < self.min_query_length:
            return []

        try:
            connected = self.probe.current_status().connected
        except Exception as exc:
            logger.warning("Connectivity check failed before search: %s", exc)
            connected = False
        if not connected:
            raise NetworkError(OFFLINE_SEARCH_MESSAGE, status_code=0)

        try:
            record = self.client.fetch(query)
        except AppError as exc:
            logger.info("No search result for %r (%s)", query, exc.message)
            return []
        except Exception as exc:
            logger.exception("Search for %r faulted", query)
            raise NetworkError(str(exc) or SEARCH_FAILED_MESSAGE, cause=exc) from exc
        return [record]
