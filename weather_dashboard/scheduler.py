"""Cancellable repeating timer that drives background refreshes."""

from __future__ import annotations

import threading
from typing import Callable, Optional

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="scheduler")

AUTO_REFRESH_INTERVAL_SECONDS = 30.0


class RefreshScheduler:
    """Run `on_tick` every `interval_seconds` until stopped.

    At most one loop is alive at a time. `stop()` wakes the pending wait
    immediately; a tick that already started is allowed to finish.
    Restarting resets the countdown.
    """

    def __init__(self, on_tick: Callable[[], None], interval_seconds: float = AUTO_REFRESH_INTERVAL_SECONDS,
                 *, name: str = "refresh-scheduler") -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.on_tick = on_tick
        self.interval_seconds = interval_seconds
        self.name = name
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self.tick_count = 0

    @property
    def is_active(self) -> bool:
        with self._lock:
            return self._stop_event is not None

    def start(self) -> bool:
        """Start the loop. Returns False (and does nothing) if already active."""
        with self._lock:
            if self._stop_event is not None:
                return False
            stop = threading.Event()
            self._stop_event = stop
            self._thread = threading.Thread(target=self._run, args=(stop,), name=self.name, daemon=True)
            self._thread.start()
        logger.debug("Auto-refresh started (every %.1fs)", self.interval_seconds)
        return True

    def stop(self) -> bool:
        """Cancel future ticks. Returns False if the loop was not running."""
        with self._lock:
            stop, self._stop_event = self._stop_event, None
            self._thread = None
        if stop is None:
            return False
        stop.set()
        logger.debug("Auto-refresh stopped")
        return True

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval_seconds):
            self.tick_count += 1
            logger.debug("Auto-refresh tick %d", self.tick_count)
            try:
                self.on_tick()
            except Exception:
                logger.exception("Auto-refresh tick failed; loop continues")
