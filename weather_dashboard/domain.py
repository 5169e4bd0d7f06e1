"""Domain vocabulary for the weather dashboard.

Plain immutable values shared by the client, the probes and the state store.
No fetching or state transitions live here.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict

DEFAULT_CITIES = ("London", "New York", "Tokyo")


class ConnectionClass(str, Enum):
    """Transport class of the active network connection."""
    NONE = "none"
    WIFI = "wifi"
    MOBILE = "mobile"
    ETHERNET = "ethernet"
    UNKNOWN = "unknown"

    @property
    def is_slow(self) -> bool:
        """Mobile and unidentified transports are treated as slow/unreliable."""
        return self in (ConnectionClass.MOBILE, ConnectionClass.UNKNOWN)


@dataclass(frozen=True)
class ConnectivityStatus:
    """One connectivity reading: reachability plus transport class."""
    connected: bool
    connection_class: ConnectionClass

    @classmethod
    def offline(cls) -> "ConnectivityStatus":
        return cls(connected=False, connection_class=ConnectionClass.NONE)

    @property
    def is_slow(self) -> bool:
        """Connected, but over a slow or unidentified transport."""
        return self.connected and self.connection_class.is_slow

    @property
    def is_usable(self) -> bool:
        """Connected over a good transport (wifi/ethernet)."""
        return self.connected and not self.connection_class.is_slow

    @property
    def is_adverse(self) -> bool:
        """True when the network dialog should be raised for this reading."""
        return (
            self.connection_class is ConnectionClass.NONE
            or not self.connected
            or self.is_slow
        )


@dataclass(frozen=True)
class WeatherRecord:
    """Normalized current-weather observation for one city."""
    city_name: str
    temperature: float  # °C
    condition: str
    description: str
    humidity: int  # percent, 0-100
    wind_speed: float  # m/s
    last_updated: int  # epoch ms, passed through from the provider

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
