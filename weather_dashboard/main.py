"""FastAPI application setup for the weather dashboard."""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI

from .api import router as api_router
from .config import Settings, settings
from .connectivity import build_connectivity_probe
from .data_sources import build_weather_client
from .store import WeatherStateStore
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="main")

StoreFactory = Callable[[], WeatherStateStore]


def build_store(app_settings: Optional[Settings] = None) -> WeatherStateStore:
    """Wire the configured client and probe into a started store."""
    app_settings = app_settings or settings
    return WeatherStateStore.create(
        build_weather_client(app_settings),
        build_connectivity_probe(app_settings),
        settings=app_settings,
    )


def create_app(store_factory: Optional[StoreFactory] = None) -> FastAPI:
    """Build the app; the store lives for the lifespan of the app."""
    factory = store_factory or build_store

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = factory()
        app.state.store = store
        logger.info("Dashboard store ready for %s", store.current_city)
        try:
            yield
        finally:
            store.dispose()
            app.state.store = None

    app = FastAPI(title="Weather Dashboard", lifespan=lifespan)

    @app.get("/health")
    def health():
        """Liveness probe."""
        return {"status": "ok"}

    app.include_router(api_router, prefix="/v1")
    return app


app = create_app()
