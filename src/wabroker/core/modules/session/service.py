import asyncio
from collections.abc import Coroutine
from datetime import timedelta
from typing import Any

import structlog

from wabroker.config import Config
from wabroker.core.core import Service
from wabroker.core.modules.backend.client import MessagingClient
from wabroker.core.modules.backend.events import (
    AuthFailure,
    Authenticated,
    Disconnected,
    IdleTimeout,
    LifecycleEvent,
    QRGenerated,
    Ready,
)
from wabroker.core.modules.session.gate import await_ready
from wabroker.core.modules.session.lifecycle import Effect, reduce
from wabroker.core.modules.session.models import Session, SessionState
from wabroker.core.modules.session.recreate import RecreateGuard
from wabroker.core.modules.session.registry import SessionRegistry
from wabroker.core.modules.session.storage import get_auth_dir, has_auth_artifacts, purge_auth_artifacts
from wabroker.utils import now

logger = structlog.get_logger(__name__)


class SessionService(Service):
    """Owns the session registry and drives each session's lifecycle.

    Backend events are queued per session and applied one at a time by the
    session's pump task, under the user's registry lock.
    """

    def __init__(self, config: Config) -> None:
        super().__init__(config)
        self.registry = SessionRegistry()
        self._recreate_guard = RecreateGuard(
            window=config.recreate_window,
            max_attempts=config.recreate_max_attempts,
            base_delay=config.recreate_backoff,
        )
        self._recreate_timers: dict[str, asyncio.TimerHandle] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    async def on_stop(self) -> None:
        """Destroy all live clients. Auth artifacts are kept so sessions resume on restart."""
        for handle in self._recreate_timers.values():
            handle.cancel()
        self._recreate_timers.clear()

        sessions = list(self.registry)
        for session in sessions:
            self.registry.remove(session.user_id, session)
            if session.pump is not None:
                session.pump.cancel()
            await self._destroy_client(session)
            self.registry.release_lock(session.user_id)

        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("session_service_stopped", destroyed=len(sessions))

    def get_session(self, user_id: str) -> Session | None:
        return self.registry.get(user_id)

    def has_stored_login(self, user_id: str) -> bool:
        """Check whether the backend kept a login for this user on disk."""
        return has_auth_artifacts(self.config.auth_path, user_id)

    def ensure_session(self, user_id: str) -> Session:
        """Get the user's session, creating it and its backend client if absent."""
        return self.registry.create(user_id, lambda: self._build_session(user_id))

    def start_session(self, user_id: str) -> Session:
        """Ensure a session on explicit user request, restoring the automatic recreate budget."""
        self._recreate_guard.reset(user_id)
        return self.ensure_session(user_id)

    async def wait_until_ready(self, user_id: str) -> MessagingClient:
        return await await_ready(
            self.registry, user_id, max_wait=self.config.ready_timeout, poll_interval=self.config.ready_poll_interval
        )

    def _build_session(self, user_id: str) -> Session:
        loop = asyncio.get_running_loop()
        auth_dir = get_auth_dir(self.config.auth_path, user_id)
        client = self.core.client_factory(user_id, auth_dir, headless=self.config.browser_headless)

        session = Session(
            user_id=user_id,
            client=client,
            idle_deadline=now() + timedelta(seconds=self.config.idle_timeout),
        )
        client.subscribe(session.events.put_nowait)
        session.idle_timer = loop.call_later(self.config.idle_timeout, session.events.put_nowait, IdleTimeout())
        session.pump = self._spawn(self._pump(session))
        self._spawn(self._initialize(session))

        logger.info("session_created", user_id=user_id, resumed=auth_dir.is_dir())
        return session

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _initialize(self, session: Session) -> None:
        try:
            await session.client.initialize()
        except Exception:
            # The idle timer tears the session down if the client never comes up
            logger.exception("client_initialize_failed", user_id=session.user_id)

    async def _pump(self, session: Session) -> None:
        while True:
            event = await session.events.get()
            async with self.registry.lock(session.user_id):
                try:
                    await self.handle_event(session, event)
                except Exception:
                    logger.exception("session_event_failed", user_id=session.user_id, event=type(event).__name__)
            if session.state is SessionState.DISCONNECTED:
                self.registry.release_lock(session.user_id)
                return

    async def handle_event(self, session: Session, event: LifecycleEvent) -> None:
        """Apply one lifecycle event to a session and run the resulting effects."""
        previous = session.state
        transition = reduce(session.state, session.last_qr, event)
        session.state = transition.state
        session.last_qr = transition.last_qr
        self._log_event(session, event, previous)

        # A failing effect does not skip the ones after it
        for effect in transition.effects:
            try:
                await self._apply_effect(session, effect)
            except Exception:
                logger.exception("session_effect_failed", user_id=session.user_id, effect=effect)

    async def _apply_effect(self, session: Session, effect: Effect) -> None:
        user_id = session.user_id
        if effect is Effect.CANCEL_IDLE_TIMER:
            if session.idle_timer is not None:
                session.idle_timer.cancel()
                session.idle_timer = None
        elif effect is Effect.DESTROY_CLIENT:
            await self._destroy_client(session)
        elif effect is Effect.PURGE_AUTH:
            try:
                purged = await asyncio.to_thread(purge_auth_artifacts, self.config.auth_path, user_id)
            except OSError:
                logger.exception("auth_purge_failed", user_id=user_id)
                return
            if purged:
                logger.info("auth_artifacts_purged", user_id=user_id)
        elif effect is Effect.REMOVE_SESSION:
            self.registry.remove(user_id, session)
        elif effect is Effect.RECREATE_SESSION:
            self._schedule_recreate(user_id)

    async def _destroy_client(self, session: Session) -> None:
        if session.closed:
            return
        session.closed = True
        if session.idle_timer is not None:
            session.idle_timer.cancel()
            session.idle_timer = None
        try:
            await session.client.destroy()
        except Exception:
            logger.exception("client_destroy_failed", user_id=session.user_id)

    def _schedule_recreate(self, user_id: str) -> None:
        loop = asyncio.get_running_loop()
        delay = self._recreate_guard.next_delay(user_id, loop.time())
        if delay is None:
            logger.warning(
                "session_recreate_suppressed",
                user_id=user_id,
                max_attempts=self.config.recreate_max_attempts,
                window=self.config.recreate_window,
            )
            return
        if delay == 0:
            logger.info("session_recreating", user_id=user_id)
            self.ensure_session(user_id)
            return

        logger.info("session_recreate_scheduled", user_id=user_id, delay=delay)
        self._recreate_timers[user_id] = loop.call_later(delay, self._recreate, user_id)

    def _recreate(self, user_id: str) -> None:
        self._recreate_timers.pop(user_id, None)
        logger.info("session_recreating", user_id=user_id)
        self.ensure_session(user_id)

    def _log_event(self, session: Session, event: LifecycleEvent, previous: SessionState) -> None:
        user_id = session.user_id
        if previous is SessionState.DISCONNECTED:
            logger.debug("event_ignored", user_id=user_id, event=type(event).__name__)
        elif isinstance(event, QRGenerated):
            logger.info("qr_generated", user_id=user_id)
        elif isinstance(event, Authenticated):
            logger.info("client_authenticated", user_id=user_id)
        elif isinstance(event, Ready):
            logger.info("client_ready", user_id=user_id)
        elif isinstance(event, AuthFailure):
            logger.error("auth_failure", user_id=user_id, message=event.message)
        elif isinstance(event, Disconnected):
            logger.warning("client_disconnected", user_id=user_id, reason=event.reason)
        elif isinstance(event, IdleTimeout) and session.state is SessionState.DISCONNECTED:
            logger.warning("session_idle_destroyed", user_id=user_id, idle_timeout=self.config.idle_timeout)
