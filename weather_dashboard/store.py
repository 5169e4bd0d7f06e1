"""Single source of truth for the dashboard's UI state.

Every intent (user action, timer tick, connectivity event) funnels through
one re-entrant lock, so transitions are applied one at a time and
subscribers see snapshots in commit order.

Fetch lifecycle
---------------
1. Re-read connectivity right before the call. Offline aborts the fetch and
   raises the network dialog; a slow connection raises it but carries on.
2. Mark the fetch as loading (initial, refresh or background).
3. Run the client call on the executor.
4. Commit the result only if no newer fetch was started and the city is
   still selected. Superseded results are dropped.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import Callable, List, Optional, Sequence

from utils.logging_utils import get_tagged_logger
from weather_dashboard import config
from weather_dashboard.connectivity.base import ConnectivityProbe, SubscriberRegistry, Subscription
from weather_dashboard.data_sources.base import WeatherClient
from weather_dashboard.domain import ConnectivityStatus, WeatherRecord
from weather_dashboard.errors import AppError, UnknownError, is_network_class
from weather_dashboard.scheduler import RefreshScheduler
from weather_dashboard.search import SearchCoordinator
from weather_dashboard.state import IDLE, Failed, Loaded, Loading, UiState, load_kind_for

logger = get_tagged_logger(__name__, tag="store")

UNKNOWN_FETCH_MESSAGE = "Unknown error occurred"

Clock = Callable[[], int]
SchedulerFactory = Callable[[Callable[[], None], float], RefreshScheduler]


def epoch_millis() -> int:
    return int(time.time() * 1000)


class WeatherStateStore:
    """Owns the UiState, the selected city and the auto-refresh timer."""

    def __init__(
        self,
        client: WeatherClient,
        probe: ConnectivityProbe,
        *,
        settings: Optional[config.Settings] = None,
        executor: Optional[Executor] = None,
        clock: Optional[Clock] = None,
        scheduler_factory: Optional[SchedulerFactory] = None,
        cities: Optional[Sequence[str]] = None,
    ) -> None:
        settings = settings or config.settings
        self._client = client
        self._probe = probe
        self._clock = clock or epoch_millis
        self._cities: List[str] = list(cities or settings.default_cities)
        self._current_city = self._cities[0]
        self._state = UiState()
        self._lock = threading.RLock()
        self._generation = 0
        self._pending: Optional[Future] = None
        self._started = False
        self._disposed = False
        self._probe_subscription: Optional[Subscription] = None
        self._subscribers = SubscriberRegistry()

        self._owns_executor = executor is None
        # two workers so a superseding fetch never queues behind a slow one
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="weather-fetch")

        factory = scheduler_factory or RefreshScheduler
        self._scheduler = factory(self._on_tick, settings.refresh_interval_seconds)
        self.search_coordinator = SearchCoordinator(
            client, probe, min_query_length=settings.search_min_query_length
        )

    @classmethod
    def create(cls, client: WeatherClient, probe: ConnectivityProbe, **kwargs) -> "WeatherStateStore":
        """Construct and start a store in one step."""
        store = cls(client, probe, **kwargs)
        store.start()
        return store

    # ---------------------------------------------------------------- reading

    @property
    def state(self) -> UiState:
        with self._lock:
            return self._state

    @property
    def current_city(self) -> str:
        with self._lock:
            return self._current_city

    @property
    def cities(self) -> List[str]:
        with self._lock:
            return list(self._cities)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def scheduler(self) -> RefreshScheduler:
        return self._scheduler

    @property
    def is_disposed(self) -> bool:
        with self._lock:
            return self._disposed

    def subscribe(self, callback: Callable[[UiState], None]) -> Subscription:
        """Deliver the current snapshot now and every committed snapshot after."""
        with self._lock:
            subscription = self._subscribers.add(callback)
            callback(self._state)
        return subscription

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the latest fetch has completed. Returns False on timeout."""
        with self._lock:
            pending = self._pending
        if pending is None:
            return True
        done, _ = wait([pending], timeout=timeout)
        return bool(done)

    # -------------------------------------------------------------- lifecycle

    def start(self) -> None:
        """Subscribe to connectivity, apply the first reading, kick off loading."""
        with self._lock:
            if self._started or self._disposed:
                return
            self._started = True

        self._probe_subscription = self._probe.events(
            self._on_connectivity_event, on_error=self._on_connectivity_error
        )
        status = self._read_connectivity()
        with self._lock:
            self._apply_connectivity(status)
        logger.info("Store started for %s (connectivity: %s)", self.current_city, status)

        if status.connected:
            self._load_weather(self.current_city, status=status)
            self._start_scheduler()

    def dispose(self) -> None:
        """Stop the timer, drop the probe subscription and ignore later results."""
        with self._lock:
            if self._disposed:
                return
            self._disposed = True
            subscription, self._probe_subscription = self._probe_subscription, None

        if subscription is not None:
            subscription.cancel()
        self._scheduler.stop()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)
        logger.info("Store disposed")

    def on_foreground(self) -> None:
        if self._ignored("on_foreground"):
            return
        self._start_scheduler()

    def on_background(self) -> None:
        if self._ignored("on_background"):
            return
        self._scheduler.stop()

    # ---------------------------------------------------------------- intents

    def select_city(self, city: str) -> None:
        city = (city or "").strip()
        if not city:
            raise ValueError("city must be a non-empty string")
        with self._lock:
            if self._ignored("select_city") or city == self._current_city:
                return
            previous, self._current_city = self._current_city, city
            if city not in self._cities:
                self._cities.append(city)
        logger.info("City changed: %s -> %s", previous, city)

        self._scheduler.stop()
        self._load_weather(city)
        self._start_scheduler()

    def refresh_weather(self) -> bool:
        """Manual refresh. Returns True if a fetch was issued."""
        with self._lock:
            if self._ignored("refresh_weather"):
                return False
            state = self._state
            if not state.is_network_available or state.is_slow_connection:
                self._commit(show_network_dialog=True)
                return False
            if state.is_loading or state.is_refreshing:
                logger.debug("Refresh ignored; a fetch is already showing progress")
                return False
            city = self._current_city
        return self._load_weather(city, is_manual_refresh=True) is not None

    def retry(self) -> bool:
        """Clear the error and fetch the current city again."""
        with self._lock:
            if self._ignored("retry"):
                return False
            if not self._state.is_network_available:
                self._commit(show_network_dialog=True)
                return False
            if self._state.has_error:
                self._commit(status=IDLE)
            city = self._current_city
        return self._load_weather(city) is not None

    def dismiss_network_dialog(self) -> None:
        with self._lock:
            self._commit(show_network_dialog=False)

    def check_network_and_retry(self) -> bool:
        """Re-probe now; fetch and resume auto-refresh if the link is good."""
        if self._ignored("check_network_and_retry"):
            return False
        status = self._read_connectivity()
        with self._lock:
            if not status.is_usable:
                self._commit(show_network_dialog=True, connection_class=status.connection_class)
                return False
            self._commit(
                show_network_dialog=False,
                is_network_available=True,
                connection_class=status.connection_class,
            )
            city = self._current_city
        issued = self._load_weather(city, status=status) is not None
        self._start_scheduler()
        return issued

    def show_search(self) -> None:
        with self._lock:
            self._commit(show_search=True)

    def hide_search(self) -> None:
        with self._lock:
            self._commit(show_search=False)

    def search(self, query: str) -> List[WeatherRecord]:
        return self.search_coordinator.search(query)

    def choose_search_result(self, city: str) -> None:
        """Adopt a city picked from search results and close the search view."""
        self.hide_search()
        self.select_city(city)

    # -------------------------------------------------------------- internals

    def _ignored(self, intent: str) -> bool:
        if self._disposed:
            logger.warning("Ignoring %s on a disposed store", intent)
            return True
        return False

    def _start_scheduler(self) -> bool:
        # dispose() sets the flag under this lock before stopping the timer
        with self._lock:
            if self._disposed:
                return False
            return self._scheduler.start()

    def _commit(self, **changes) -> UiState:
        new_state = self._state.evolve(**changes)
        if new_state != self._state:
            self._state = new_state
            self._subscribers.publish(new_state)
        return self._state

    def _read_connectivity(self) -> ConnectivityStatus:
        try:
            return self._probe.current_status()
        except Exception as exc:
            logger.warning("Connectivity probe failed; treating as offline: %s", exc)
            return ConnectivityStatus.offline()

    def _apply_connectivity(self, status: ConnectivityStatus) -> None:
        changes = {
            "is_network_available": status.connected,
            "connection_class": status.connection_class,
        }
        if status.is_adverse:
            changes["show_network_dialog"] = True
        self._commit(**changes)

    def _on_connectivity_event(self, status: ConnectivityStatus) -> None:
        with self._lock:
            if self._disposed:
                return
            logger.info("Connectivity event: %s", status)
            self._apply_connectivity(status)

    def _on_connectivity_error(self, exc: BaseException) -> None:
        logger.warning("Connectivity stream error ignored: %s", exc)

    def _on_tick(self) -> None:
        if self.is_disposed:
            return
        self._load_weather(self.current_city)

    def _load_weather(self, city: str, is_manual_refresh: bool = False,
                      status: Optional[ConnectivityStatus] = None) -> Optional[Future]:
        """Re-check connectivity, mark loading and submit the call. Never call with the lock held.

        `status` is a reading the caller took just before; otherwise the
        probe is read here, outside the lock.
        """
        if status is None:
            status = self._read_connectivity()
        with self._lock:
            if self._disposed:
                return None

            if not status.connected:
                logger.info("Skipping fetch for %s: no connectivity", city)
                self._commit(
                    status=IDLE if self._state.is_fetching else self._state.status,
                    show_network_dialog=True,
                    is_network_available=False,
                    connection_class=status.connection_class,
                )
                return None

            if status.is_slow:
                self._commit(show_network_dialog=True, connection_class=status.connection_class)

            # only a fetch that is actually issued supersedes the one in flight
            self._generation += 1
            generation = self._generation
            kind = load_kind_for(is_manual_refresh, self._state.weather is not None)
            self._commit(status=Loading(kind))
            logger.debug("Fetch #%d for %s (%s)", generation, city, kind.value)
            future = self._executor.submit(self._fetch_and_commit, city, generation)
            self._pending = future
            return future

    def _fetch_and_commit(self, city: str, generation: int) -> None:
        record: Optional[WeatherRecord] = None
        error: Optional[AppError] = None
        try:
            record = self._client.fetch(city)
        except AppError as exc:
            error = exc
        except Exception as exc:
            logger.exception("Weather client raised outside the error taxonomy")
            error = UnknownError(str(exc) or UNKNOWN_FETCH_MESSAGE, cause=exc, status_code=0)

        with self._lock:
            if self._disposed or generation != self._generation or city != self._current_city:
                logger.info(
                    "Discarding result of fetch #%d for %s (current #%d, %s)",
                    generation, city, self._generation, self._current_city,
                )
                return

            if error is None:
                self._commit(
                    status=Loaded(record),
                    weather=record,
                    last_updated=self._clock(),
                    is_network_available=True,
                )
                return

            logger.warning("Fetch #%d for %s failed: %s", generation, city, error.message)
            if is_network_class(error):
                self._commit(status=Failed(error), show_network_dialog=True, is_network_available=False)
            else:
                self._commit(status=Failed(error))
