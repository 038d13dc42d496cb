"""Bounded wait for a session to become ready."""

import asyncio

import structlog

from wabroker.core.modules.backend.client import MessagingClient
from wabroker.core.modules.session.registry import SessionRegistry
from wabroker.errors import SessionTimeoutError, SessionVanishedError

logger = structlog.get_logger(__name__)


async def await_ready(
    registry: SessionRegistry, user_id: str, max_wait: float, poll_interval: float
) -> MessagingClient:
    """Wait until the user's session is ready and return its client.

    The registry is read again on every tick, since a disconnect replaces the
    session object while a wait is outstanding.

    Raises:
        SessionVanishedError: The user's session left the registry during the wait
        SessionTimeoutError: The session was not ready after ``max_wait`` seconds
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max_wait
    waiting_logged = False

    while True:
        session = registry.get(user_id)
        if session is None:
            raise SessionVanishedError
        if session.is_ready:
            return session.client

        remaining = deadline - loop.time()
        if remaining <= 0:
            logger.warning("session_ready_timeout", user_id=user_id, max_wait=max_wait)
            raise SessionTimeoutError

        if not waiting_logged:
            logger.info("session_ready_waiting", user_id=user_id, state=session.state)
            waiting_logged = True
        await asyncio.sleep(min(poll_interval, remaining))
