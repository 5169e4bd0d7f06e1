"""Error taxonomy shared by the weather client, the store and search."""

from __future__ import annotations

import socket
from typing import Optional

from urllib3.exceptions import NameResolutionError

NETWORK_MESSAGE_HINTS = ("internet", "connection")

_RESOLUTION_MESSAGE_HINTS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "temporary failure in name resolution",
    "failed to resolve",
)


class AppError(Exception):
    """Base error carrying a user-facing message, a cause and a status code.

    `status_code` is the HTTP status for server responses and 0 when no
    response was received at all.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None, status_code: int = 0) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status_code = status_code

    @property
    def kind(self) -> str:
        return "unknown"

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "status_code": self.status_code}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class NetworkError(AppError):
    """Transport, DNS, timeout or HTTP-level failure. Recoverable."""

    @property
    def kind(self) -> str:
        return "network"


class UnknownError(AppError):
    """Anything that is not a transport problem (bad payload, bugs)."""


def is_name_resolution_failure(exc: Optional[BaseException]) -> bool:
    """Return True if `exc` or anything it wraps is a host-resolution failure.

    requests nests the socket error several levels deep (ConnectionError ->
    MaxRetryError.reason -> NameResolutionError -> gaierror), so the chain is
    walked through `__cause__`, `__context__`, `reason` and `args`.
    """
    seen: set[int] = set()
    pending: list[object] = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        if isinstance(current, NameResolutionError):
            return True
        if isinstance(current, BaseException):
            text = str(current).lower()
            if any(hint in text for hint in _RESOLUTION_MESSAGE_HINTS):
                return True
            pending.extend([current.__cause__, current.__context__, getattr(current, "reason", None)])
            pending.extend(arg for arg in current.args if isinstance(arg, BaseException))
    return False


def is_network_class(error: AppError) -> bool:
    """Decide whether a fetch failure should raise the network dialog.

    A failure is network-class when its message mentions connectivity, its
    cause is a DNS failure, or no response was received (status 0).
    """
    message = (error.message or "").lower()
    if any(hint in message for hint in NETWORK_MESSAGE_HINTS):
        return True
    if is_name_resolution_failure(error.cause):
        return True
    return error.status_code == 0
