"""In-memory connectivity probe, intended for development and tests."""

from typing import Optional

from utils.logging_utils import get_tagged_logger
from weather_dashboard.connectivity.base import (
    ConnectivityProbe,
    ErrorCallback,
    StatusCallback,
    SubscriberRegistry,
    Subscription,
)
from weather_dashboard.domain import ConnectionClass, ConnectivityStatus

logger = get_tagged_logger(__name__, tag="connectivity/manual_probe")


class ManualConnectivityProbe(ConnectivityProbe):
    """Probe whose readings are set by hand; every change is published."""

    def __init__(self, connected: bool = True, connection_class: ConnectionClass = ConnectionClass.WIFI) -> None:
        if not connected:
            connection_class = ConnectionClass.NONE
        self._status = ConnectivityStatus(connected=connected, connection_class=connection_class)
        self._registry = SubscriberRegistry()
        self.status_reads = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._registry)

    def current_status(self) -> ConnectivityStatus:
        self.status_reads += 1
        return self._status

    def set_status(self, connected: bool, connection_class: Optional[ConnectionClass] = None,
                   *, publish: bool = True) -> ConnectivityStatus:
        """Change the reading. Disconnected readings always carry `NONE`.

        With `publish=False` only synchronous reads see the change, which
        models connectivity dropping between two event deliveries.
        """
        if not connected:
            connection_class = ConnectionClass.NONE
        elif connection_class is None:
            connection_class = ConnectionClass.WIFI
        self._status = ConnectivityStatus(connected=connected, connection_class=connection_class)
        logger.debug("Manual connectivity set to %s", self._status)
        if publish:
            self._registry.publish(self._status)
        return self._status

    def fail(self, exc: BaseException) -> None:
        """Simulate the event stream itself erroring."""
        self._registry.fail(exc)

    def events(self, callback: StatusCallback, on_error: Optional[ErrorCallback] = None) -> Subscription:
        return self._registry.add(callback, on_error)
