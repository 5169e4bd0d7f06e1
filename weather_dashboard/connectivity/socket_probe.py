"""Connectivity probe backed by a TCP reachability check and the host's interfaces."""

from __future__ import annotations

import socket
import threading
from pathlib import Path
from typing import Callable, Optional

from utils.logging_utils import get_tagged_logger
from weather_dashboard.connectivity.base import (
    ConnectivityProbe,
    ErrorCallback,
    StatusCallback,
    SubscriberRegistry,
    Subscription,
)
from weather_dashboard.domain import ConnectionClass, ConnectivityStatus

logger = get_tagged_logger(__name__, tag="connectivity/socket_probe")

SYS_CLASS_NET = Path("/sys/class/net")

WIFI_PREFIXES = ("wl",)
ETHERNET_PREFIXES = ("en", "eth")
MOBILE_PREFIXES = ("ww", "rmnet", "ppp", "wwan")

# ppp and some tunnel drivers never report "up"
_UP_STATES = {"up", "unknown"}


def classify_interface(name: str) -> ConnectionClass:
    """Map a kernel interface name onto a ConnectionClass."""
    lowered = name.lower()
    if lowered.startswith(WIFI_PREFIXES):
        return ConnectionClass.WIFI
    if lowered.startswith(ETHERNET_PREFIXES):
        return ConnectionClass.ETHERNET
    if lowered.startswith(MOBILE_PREFIXES):
        return ConnectionClass.MOBILE
    return ConnectionClass.UNKNOWN


class SocketConnectivityProbe(ConnectivityProbe):
    """Report reachability by opening a TCP connection to a well-known host.

    Events are produced by a polling thread that only runs while at least one
    subscription is live, and only fires when the reading changes.
    """

    def __init__(
        self,
        host: str = "1.1.1.1",
        port: int = 53,
        *,
        timeout: float = 3.0,
        poll_interval: float = 5.0,
        sys_class_net: Path = SYS_CLASS_NET,
        connect: Callable[..., socket.socket] = socket.create_connection,
    ) -> None:
        self.host = host
        self.port = port
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.sys_class_net = Path(sys_class_net)
        self._connect = connect
        self._registry = SubscriberRegistry(on_empty=self._stop_polling)
        self._poll_lock = threading.Lock()
        self._poll_stop: Optional[threading.Event] = None

    def current_status(self) -> ConnectivityStatus:
        try:
            with self._connect((self.host, self.port), timeout=self.timeout):
                pass
        except OSError as exc:
            logger.debug("Reachability check to %s:%s failed: %s", self.host, self.port, exc)
            return ConnectivityStatus.offline()
        return ConnectivityStatus(connected=True, connection_class=self.active_connection_class())

    def active_connection_class(self) -> ConnectionClass:
        """Classify the best interface that is up; wired beats wireless beats mobile."""
        try:
            names = sorted(p.name for p in self.sys_class_net.iterdir())
        except OSError:
            return ConnectionClass.UNKNOWN

        found = set()
        for name in names:
            if name == "lo":
                continue
            try:
                state = (self.sys_class_net / name / "operstate").read_text().strip().lower()
            except OSError:
                continue
            if state in _UP_STATES:
                found.add(classify_interface(name))

        for preferred in (ConnectionClass.ETHERNET, ConnectionClass.WIFI, ConnectionClass.MOBILE):
            if preferred in found:
                return preferred
        return ConnectionClass.UNKNOWN

    def events(self, callback: StatusCallback, on_error: Optional[ErrorCallback] = None) -> Subscription:
        subscription = self._registry.add(callback, on_error)
        self._start_polling()
        return subscription

    def _start_polling(self) -> None:
        with self._poll_lock:
            if self._poll_stop is not None:
                return
            stop = threading.Event()
            self._poll_stop = stop
        thread = threading.Thread(target=self._poll_loop, args=(stop,), name="connectivity-poll", daemon=True)
        thread.start()
        logger.debug("Connectivity polling started (every %.1fs)", self.poll_interval)

    def _stop_polling(self) -> None:
        with self._poll_lock:
            stop, self._poll_stop = self._poll_stop, None
        if stop is not None:
            stop.set()
            logger.debug("Connectivity polling stopped")

    def _poll_loop(self, stop: threading.Event) -> None:
        last: Optional[ConnectivityStatus] = None
        try:
            last = self.current_status()
        except Exception as exc:
            self._registry.fail(exc)
        while not stop.wait(self.poll_interval):
            try:
                status = self.current_status()
            except Exception as exc:
                logger.warning("Connectivity poll failed: %s", exc)
                self._registry.fail(exc)
                continue
            if status != last:
                logger.info("Connectivity changed: %s -> %s", last, status)
                last = status
                self._registry.publish(status)
