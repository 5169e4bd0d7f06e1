"""Immutable UI state snapshots for the weather dashboard.

`UiState` is never mutated in place: every transition builds a new snapshot
with `dataclasses.replace`, so a reader holding a snapshot never observes a
half-applied update.

Fetch progress is a single tagged value (`Idle`, `Loading`, `Loaded`,
`Failed`) rather than a pair of booleans. The last good record lives in
`weather` separately so it stays visible after a failure.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

from weather_dashboard.domain import ConnectionClass, WeatherRecord
from weather_dashboard.errors import AppError


class LoadKind(str, Enum):
    """Why a fetch is in flight."""
    INITIAL = "initial"        # foreground fetch with nothing on screen yet
    REFRESH = "refresh"        # user pulled to refresh
    BACKGROUND = "background"  # timer tick, or foreground fetch over existing data


@dataclass(frozen=True)
class Idle:
    tag: str = field(default="idle", init=False)


@dataclass(frozen=True)
class Loading:
    kind: LoadKind
    tag: str = field(default="loading", init=False)


@dataclass(frozen=True)
class Loaded:
    record: WeatherRecord
    tag: str = field(default="loaded", init=False)


@dataclass(frozen=True)
class Failed:
    error: AppError
    tag: str = field(default="failed", init=False)


FetchStatus = Union[Idle, Loading, Loaded, Failed]

IDLE = Idle()


def load_kind_for(is_manual_refresh: bool, has_weather: bool) -> LoadKind:
    """Manual refreshes show the refresh indicator; first loads show the loader."""
    if is_manual_refresh:
        return LoadKind.REFRESH
    if not has_weather:
        return LoadKind.INITIAL
    return LoadKind.BACKGROUND


@dataclass(frozen=True)
class UiState:
    status: FetchStatus = IDLE
    weather: Optional[WeatherRecord] = None
    last_updated: Optional[int] = None  # epoch ms of the last successful fetch
    is_network_available: bool = True
    connection_class: ConnectionClass = ConnectionClass.UNKNOWN
    show_network_dialog: bool = False
    show_search: bool = False

    @property
    def is_loading(self) -> bool:
        return isinstance(self.status, Loading) and self.status.kind is LoadKind.INITIAL

    @property
    def is_refreshing(self) -> bool:
        return isinstance(self.status, Loading) and self.status.kind is LoadKind.REFRESH

    @property
    def is_fetching(self) -> bool:
        """Any fetch in flight, including silent background ones."""
        return isinstance(self.status, Loading)

    @property
    def error(self) -> Optional[AppError]:
        return self.status.error if isinstance(self.status, Failed) else None

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def has_data(self) -> bool:
        return self.weather is not None and not self.is_loading and not self.is_refreshing

    @property
    def is_slow_connection(self) -> bool:
        return self.connection_class.is_slow

    def evolve(self, **changes: Any) -> "UiState":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view including the derived flags."""
        return {
            "status": self.status.tag,
            "load_kind": self.status.kind.value if isinstance(self.status, Loading) else None,
            "weather": self.weather.to_dict() if self.weather else None,
            "error": self.error.to_dict() if self.error else None,
            "last_updated": self.last_updated,
            "is_loading": self.is_loading,
            "is_refreshing": self.is_refreshing,
            "is_network_available": self.is_network_available,
            "connection_class": self.connection_class.value,
            "is_slow_connection": self.is_slow_connection,
            "show_network_dialog": self.show_network_dialog,
            "show_search": self.show_search,
            "has_error": self.has_error,
            "has_data": self.has_data,
        }
