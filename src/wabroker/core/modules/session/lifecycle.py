"""Session state machine.

``reduce`` maps the current state and a backend event to the next state and the
side effects the session service must run, in order.
"""

from dataclasses import dataclass
from enum import StrEnum

from wabroker.core.modules.backend.events import (
    AuthFailure,
    Authenticated,
    Disconnected,
    IdleTimeout,
    LifecycleEvent,
    QRGenerated,
    Ready,
)
from wabroker.core.modules.session.models import SessionState


class Effect(StrEnum):
    CANCEL_IDLE_TIMER = "cancel_idle_timer"
    DESTROY_CLIENT = "destroy_client"
    PURGE_AUTH = "purge_auth"
    REMOVE_SESSION = "remove_session"
    RECREATE_SESSION = "recreate_session"


# Auth artifacts must be gone before the entry leaves the registry
DISCONNECT_EFFECTS = (
    Effect.CANCEL_IDLE_TIMER,
    Effect.DESTROY_CLIENT,
    Effect.PURGE_AUTH,
    Effect.REMOVE_SESSION,
    Effect.RECREATE_SESSION,
)
IDLE_TIMEOUT_EFFECTS = (Effect.DESTROY_CLIENT, Effect.REMOVE_SESSION)


@dataclass(frozen=True, slots=True)
class Transition:
    state: SessionState
    last_qr: str | None
    effects: tuple[Effect, ...] = ()


def reduce(state: SessionState, last_qr: str | None, event: LifecycleEvent) -> Transition:
    unchanged = Transition(state, last_qr)

    if state is SessionState.DISCONNECTED:
        return unchanged

    if isinstance(event, QRGenerated):
        return Transition(SessionState.AWAITING_SCAN, event.qr)

    if isinstance(event, Authenticated):
        if state is SessionState.READY:
            return unchanged
        return Transition(SessionState.AUTHENTICATING, None)

    if isinstance(event, Ready):
        return Transition(SessionState.READY, None, (Effect.CANCEL_IDLE_TIMER,))

    if isinstance(event, AuthFailure):
        return Transition(SessionState.AWAITING_SCAN, last_qr)

    if isinstance(event, Disconnected):
        return Transition(SessionState.DISCONNECTED, None, DISCONNECT_EFFECTS)

    if isinstance(event, IdleTimeout):
        if state is SessionState.READY:
            return unchanged
        return Transition(SessionState.DISCONNECTED, None, IDLE_TIMEOUT_EFFECTS)

    raise TypeError(f"Unknown lifecycle event: {event!r}")
