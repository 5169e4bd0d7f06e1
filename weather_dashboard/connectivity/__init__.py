"""Connectivity probes."""

from .base import ConnectivityProbe, SubscriberRegistry, Subscription
from .factory import build_connectivity_probe
from .manual import ManualConnectivityProbe
from .socket_probe import SocketConnectivityProbe, classify_interface

__all__ = [
    "ConnectivityProbe",
    "SubscriberRegistry",
    "Subscription",
    "build_connectivity_probe",
    "ManualConnectivityProbe",
    "SocketConnectivityProbe",
    "classify_interface",
]
