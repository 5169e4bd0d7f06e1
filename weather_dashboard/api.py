"""HTTP API exposing the dashboard's presentation intents."""

import hmac
from typing import List, Optional

import redis
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from .config import settings
from .domain import WeatherRecord
from .errors import AppError
from .state import UiState
from .store import WeatherStateStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="api")

_redis_client = None
if settings.api_key_redis_url:
    try:
        _redis_client = redis.Redis.from_url(settings.api_key_redis_url)
        logger.info("API key checks will use Redis backend", extra={"redis_url": settings.api_key_redis_url})
    except (redis.RedisError, ValueError) as exc:
        logger.warning("Failed to configure Redis for API key checks; falling back to static key",
                       extra={"error": str(exc)})


def require_api_key(x_api_key: str | None = Header(default=None)):
    """
    Validate X-API-Key header against Redis (if configured) or the static api_key setting.
    """
    if not settings.api_key and not _redis_client:
        return

    if not x_api_key:
        logger.debug("No API key provided")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing API key")

    if _redis_client:
        try:
            if _redis_client.sismember(settings.api_key_redis_set, x_api_key):
                return
        except redis.RedisError as e:
            logger.warning("Redis API key lookup error; falling back to static key",
                           extra={"error": str(e)})

    if settings.api_key and hmac.compare_digest(str(x_api_key), str(settings.api_key)):
        return

    logger.debug("Invalid API key provided")
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


router = APIRouter(dependencies=[Depends(require_api_key)])


def get_store(request: Request) -> WeatherStateStore:
    """Return the store created by the application lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Store not started")
    return store


class WeatherView(BaseModel):
    """Serialized WeatherRecord."""
    city_name: str
    temperature: float
    condition: str
    description: str
    humidity: int
    wind_speed: float
    last_updated: int

    @classmethod
    def from_record(cls, record: WeatherRecord) -> "WeatherView":
        return cls(**record.to_dict())


class ErrorView(BaseModel):
    kind: str
    message: str
    status_code: int


class UiStateView(BaseModel):
    """Snapshot of UiState including derived flags."""
    status: str
    load_kind: Optional[str] = None
    weather: Optional[WeatherView] = None
    error: Optional[ErrorView] = None
    last_updated: Optional[int] = None
    is_loading: bool
    is_refreshing: bool
    is_network_available: bool
    connection_class: str
    is_slow_connection: bool
    show_network_dialog: bool
    show_search: bool
    has_error: bool
    has_data: bool


class DashboardResponse(BaseModel):
    """State snapshot plus the city selection."""
    current_city: str
    cities: List[str]
    state: UiStateView


class CityRequest(BaseModel):
    """City to select or adopt from search results."""
    city: str = Field(min_length=1)


class SearchResponse(BaseModel):
    query: str
    results: List[WeatherView]


class IntentResponse(DashboardResponse):
    """Dashboard snapshot plus whether the intent issued a fetch."""
    fetch_issued: Optional[bool] = None


def _snapshot(store: WeatherStateStore, fetch_issued: Optional[bool] = None, *,
              settle: bool = False) -> IntentResponse:
    """Build the response; with `settle`, wait for a fetch the intent started."""
    if settle and not store.wait_idle(timeout=settings.request_timeout_seconds):
        logger.info("Fetch still running; responding with the in-progress snapshot")
    state: UiState = store.state
    return IntentResponse(
        current_city=store.current_city,
        cities=store.cities,
        state=UiStateView(**state.to_dict()),
        fetch_issued=fetch_issued,
    )


@router.get("/state", response_model=DashboardResponse)
def get_state(store: WeatherStateStore = Depends(get_store)):
    """Return the current dashboard snapshot."""
    return _snapshot(store)


@router.post("/city", response_model=IntentResponse)
def select_city(req: CityRequest, store: WeatherStateStore = Depends(get_store)):
    """Switch the selected city and restart auto-refresh."""
    logger.info("Selecting city via API: %s", req.city)
    try:
        store.select_city(req.city)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _snapshot(store, settle=True)


@router.post("/refresh", response_model=IntentResponse)
def refresh(store: WeatherStateStore = Depends(get_store)):
    """Manual refresh of the current city."""
    return _snapshot(store, store.refresh_weather(), settle=True)


@router.post("/retry", response_model=IntentResponse)
def retry(store: WeatherStateStore = Depends(get_store)):
    """Clear the error and fetch again."""
    return _snapshot(store, store.retry(), settle=True)


@router.post("/network-dialog/dismiss", response_model=IntentResponse)
def dismiss_network_dialog(store: WeatherStateStore = Depends(get_store)):
    store.dismiss_network_dialog()
    return _snapshot(store)


@router.post("/network/check", response_model=IntentResponse)
def check_network(store: WeatherStateStore = Depends(get_store)):
    """Re-probe connectivity and retry if the connection is good."""
    return _snapshot(store, store.check_network_and_retry(), settle=True)


@router.post("/search/show", response_model=IntentResponse)
def show_search(store: WeatherStateStore = Depends(get_store)):
    store.show_search()
    return _snapshot(store)


@router.post("/search/hide", response_model=IntentResponse)
def hide_search(store: WeatherStateStore = Depends(get_store)):
    store.hide_search()
    return _snapshot(store)


@router.get("/search", response_model=SearchResponse)
def search(q: str = Query(default=""), store: WeatherStateStore = Depends(get_store)):
    """Look up a city; an unknown city yields an empty result list."""
    try:
        records = store.search(q)
    except AppError as exc:
        logger.warning("Search failed", extra={"query": q, "error": exc.message})
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=exc.message)
    return SearchResponse(query=q, results=[WeatherView.from_record(r) for r in records])


@router.post("/search/select", response_model=IntentResponse)
def choose_search_result(req: CityRequest, store: WeatherStateStore = Depends(get_store)):
    """Adopt a searched city and close the search view."""
    try:
        store.choose_search_result(req.city)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _snapshot(store, settle=True)


@router.post("/lifecycle/foreground", response_model=IntentResponse)
def on_foreground(store: WeatherStateStore = Depends(get_store)):
    store.on_foreground()
    return _snapshot(store)


@router.post("/lifecycle/background", response_model=IntentResponse)
def on_background(store: WeatherStateStore = Depends(get_store)):
    store.on_background()
    return _snapshot(store)
