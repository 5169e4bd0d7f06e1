"""Factory helpers for choosing a connectivity probe at startup."""

from __future__ import annotations

from weather_dashboard import config
from weather_dashboard.connectivity.base import ConnectivityProbe
from weather_dashboard.connectivity.manual import ManualConnectivityProbe
from weather_dashboard.connectivity.socket_probe import SocketConnectivityProbe
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="connectivity/factory")


def build_connectivity_probe(settings: config.Settings | None = None) -> ConnectivityProbe:
    """Instantiate the configured connectivity probe."""
    settings = settings or config.settings
    kind = (settings.connectivity_probe or "socket").lower()

    if kind == "socket":
        logger.info(
            "Using SocketConnectivityProbe",
            extra={"host": settings.connectivity_host, "port": settings.connectivity_port},
        )
        return SocketConnectivityProbe(
            settings.connectivity_host,
            settings.connectivity_port,
            timeout=settings.connectivity_timeout_seconds,
            poll_interval=settings.connectivity_poll_seconds,
        )

    if kind == "manual":
        logger.info("Using ManualConnectivityProbe (always connected over wifi until changed)")
        return ManualConnectivityProbe()

    raise ValueError(f"Unknown connectivity probe '{kind}'")
