"""Lifecycle events emitted by a messaging backend client."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class QRGenerated:
    """A new scannable login payload is available."""

    qr: str


@dataclass(frozen=True, slots=True)
class Authenticated:
    """The phone scanned the QR code or stored credentials were accepted."""


@dataclass(frozen=True, slots=True)
class Ready:
    """The client is logged in and can send messages."""


@dataclass(frozen=True, slots=True)
class AuthFailure:
    """Stored credentials were rejected."""

    message: str = ""


@dataclass(frozen=True, slots=True)
class Disconnected:
    """The client lost its logged-in connection."""

    reason: str = ""


@dataclass(frozen=True, slots=True)
class IdleTimeout:
    """Raised internally when a session stays unauthenticated for too long."""


LifecycleEvent = QRGenerated | Authenticated | Ready | AuthFailure | Disconnected | IdleTimeout
