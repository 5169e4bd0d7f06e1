"""Shared protocol and subscription plumbing for connectivity probes.

`SubscriberRegistry` is value-agnostic; the state store reuses it for
UiState subscribers.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, List, Optional, Protocol

from utils.logging_utils import get_tagged_logger
from weather_dashboard.domain import ConnectivityStatus

logger = get_tagged_logger(__name__, tag="connectivity/base")

StatusCallback = Callable[[ConnectivityStatus], None]
ValueCallback = Callable[[Any], None]
ErrorCallback = Callable[[BaseException], None]


class ConnectivityProbe(Protocol):
    """Protocol for anything that can report network reachability."""

    def current_status(self) -> ConnectivityStatus:
        """Synchronously read the current connectivity."""

    def events(self, callback: StatusCallback, on_error: Optional[ErrorCallback] = None) -> "Subscription":
        """Deliver connectivity changes to `callback` until the handle is cancelled."""


class Subscription:
    """Handle returned by `events()`.

    `cancel()` is idempotent. Once it returns, the callback is never invoked
    again, including by a delivery already racing on another thread.
    """

    def __init__(self, registry: "SubscriberRegistry", callback: ValueCallback,
                 on_error: Optional[ErrorCallback] = None) -> None:
        self._registry = registry
        self.callback = callback
        self.on_error = on_error
        self.active = True

    def cancel(self) -> None:
        self._registry.remove(self)

    def __repr__(self) -> str:
        return f"Subscription(active={self.active})"


class SubscriberRegistry:
    """Thread-safe list of subscriptions with serialized delivery."""

    def __init__(self, on_empty: Optional[Callable[[], None]] = None) -> None:
        self._lock = threading.RLock()
        self._subscriptions: List[Subscription] = []
        self._on_empty = on_empty

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def add(self, callback: ValueCallback, on_error: Optional[ErrorCallback] = None) -> Subscription:
        subscription = Subscription(self, callback, on_error)
        with self._lock:
            self._subscriptions.append(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        with self._lock:
            if not subscription.active:
                return
            subscription.active = False
            self._subscriptions = [s for s in self._subscriptions if s is not subscription]
            now_empty = not self._subscriptions
        if now_empty and self._on_empty is not None:
            self._on_empty()

    def publish(self, value: Any) -> None:
        """Deliver `value` to every live subscriber, in subscription order."""
        with self._lock:
            for subscription in list(self._subscriptions):
                if not subscription.active:
                    continue
                try:
                    subscription.callback(value)
                except Exception:
                    logger.exception("Subscriber raised; continuing with the rest")

    def fail(self, exc: BaseException) -> None:
        """Report a stream failure to subscribers that asked for errors."""
        with self._lock:
            for subscription in list(self._subscriptions):
                if not subscription.active or subscription.on_error is None:
                    continue
                try:
                    subscription.on_error(exc)
                except Exception:
                    logger.exception("Connectivity error handler raised")
