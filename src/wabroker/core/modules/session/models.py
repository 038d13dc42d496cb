"""Session state models."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from wabroker.core.modules.backend.client import MessagingClient
from wabroker.core.modules.backend.events import LifecycleEvent
from wabroker.utils import now


class SessionState(StrEnum):
    """Lifecycle states of a messaging session.

    - INITIALIZING: client created, no QR code yet
    - AWAITING_SCAN: QR code available, waiting for the phone to scan it
    - AUTHENTICATING: QR code scanned or stored credentials accepted
    - READY: logged in, messages can be sent
    - DISCONNECTED: torn down, about to leave the registry
    """

    INITIALIZING = "initializing"
    AWAITING_SCAN = "awaiting_scan"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    DISCONNECTED = "disconnected"


class LoginStatus(StrEnum):
    """Login status reported to API clients."""

    READY = "ready"
    QR = "qr"
    PENDING = "pending"
    NOT_STARTED = "not_started"


@dataclass(eq=False)
class Session:
    """In-memory state of one user's messaging session.

    The session exclusively owns ``client``; it is destroyed when the session is torn down.
    """

    user_id: str
    client: MessagingClient
    idle_deadline: datetime
    state: SessionState = SessionState.INITIALIZING
    last_qr: str | None = None
    created_at: datetime = field(default_factory=now)
    events: asyncio.Queue[LifecycleEvent] = field(default_factory=asyncio.Queue)
    idle_timer: asyncio.TimerHandle | None = None
    pump: asyncio.Task[None] | None = None
    closed: bool = False

    @property
    def is_ready(self) -> bool:
        return self.state is SessionState.READY


class SessionStatus(BaseModel):
    """Login status of a user's session."""

    status: LoginStatus = Field(..., description="Current login status")
    qr: str | None = Field(None, description="QR code image as a PNG data URI, present when status is 'qr'")
