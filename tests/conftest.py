"""Shared pytest fixtures."""

import asyncio
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

import pytest

from wabroker.config import Config
from wabroker.core.core import Core
from wabroker.core.modules.backend.client import EventListener
from wabroker.core.modules.backend.events import LifecycleEvent, QRGenerated, Ready
from wabroker.core.modules.backend.media import MessageMedia
from wabroker.core.modules.session.models import Session


class FakeClient:
    """Messaging client double that records calls and emits scripted events."""

    def __init__(
        self,
        user_id: str,
        auth_dir: Path,
        *,
        on_initialize: Sequence[LifecycleEvent] = (),
        initialize_error: Exception | None = None,
    ) -> None:
        self.user_id = user_id
        self.auth_dir = auth_dir
        self.on_initialize = list(on_initialize)
        self.initialize_error = initialize_error
        self.listeners: list[EventListener] = []
        self.initialized = False
        self.destroy_calls = 0
        self.sent: list[tuple[str, str | MessageMedia, str | None]] = []
        self.fail_at_call: int | None = None
        self.send_error: Exception = RuntimeError("Evaluation failed: chat not found")

    def subscribe(self, listener: EventListener) -> None:
        self.listeners.append(listener)

    def emit(self, event: LifecycleEvent) -> None:
        for listener in self.listeners:
            listener(event)

    async def initialize(self) -> None:
        if self.initialize_error is not None:
            raise self.initialize_error
        self.initialized = True
        for event in self.on_initialize:
            self.emit(event)

    async def send_message(self, chat_id: str, content: str | MessageMedia, caption: str | None = None) -> None:
        if self.fail_at_call is not None and len(self.sent) == self.fail_at_call:
            raise self.send_error
        self.sent.append((chat_id, content, caption))

    async def destroy(self) -> None:
        self.destroy_calls += 1


class FakeClientFactory:
    """Client factory that keeps every client it builds."""

    def __init__(self, on_initialize: Sequence[LifecycleEvent] = ()) -> None:
        self.on_initialize = list(on_initialize)
        self.initialize_error: Exception | None = None
        self.clients: list[FakeClient] = []

    def __call__(self, user_id: str, auth_dir: Path, *, headless: bool = True) -> FakeClient:
        client = FakeClient(
            user_id, auth_dir, on_initialize=self.on_initialize, initialize_error=self.initialize_error
        )
        self.clients.append(client)
        return client

    def for_user(self, user_id: str) -> list[FakeClient]:
        return [client for client in self.clients if client.user_id == user_id]

    def latest(self, user_id: str) -> FakeClient:
        return self.for_user(user_id)[-1]


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config(tmp_path):
    """Config with short timings; ratios between them match the production defaults."""
    return Config(
        _env_file=None,
        auth_path=str(tmp_path / "auth"),
        cors_origins=[],
        idle_timeout=5.0,
        ready_timeout=0.3,
        ready_poll_interval=0.01,
        start_grace_period=0.05,
        fetch_timeout=1.0,
        recreate_window=60.0,
        recreate_max_attempts=3,
        recreate_backoff=0.02,
    )


@pytest.fixture
def fake_factory():
    return FakeClientFactory()


@pytest.fixture
def ready_factory():
    """Factory whose clients log in from stored credentials as soon as they start."""
    return FakeClientFactory(on_initialize=[Ready()])


@pytest.fixture
def qr_factory():
    return FakeClientFactory(on_initialize=[QRGenerated("2@payload")])


@pytest.fixture
def core(config, fake_factory):
    return Core(config, client_factory=fake_factory)


@pytest.fixture
def make_session(tmp_path):
    """Build detached sessions for registry and gate tests."""

    def _make(user_id: str = "alice") -> Session:
        client = FakeClient(user_id, tmp_path / f"session-{user_id}")
        return Session(user_id=user_id, client=client, idle_deadline=datetime.now(UTC))

    return _make


@pytest.fixture
def eventually():
    """Wait until a condition holds, failing the test after a timeout."""

    async def _eventually(condition: Callable[[], bool], timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not condition():
            if loop.time() > deadline:
                pytest.fail("Condition not met before timeout")
            await asyncio.sleep(0.005)

    return _eventually


@pytest.fixture
async def running_core(core):
    """Core with all services started; live sessions are destroyed on teardown."""
    async with core.lifespan():
        yield core


@pytest.fixture
def session_service(running_core):
    return running_core.services.session
