"""Interface between the session broker and a messaging backend."""

import importlib
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, cast

from wabroker.core.modules.backend.events import LifecycleEvent
from wabroker.core.modules.backend.media import MessageMedia

EventListener = Callable[[LifecycleEvent], None]


class MessagingClient(Protocol):
    """Backend capability owned by exactly one session.

    Implementations report their lifecycle through the listener passed to
    ``subscribe``. Listeners are called on the event loop, in emission order.
    """

    def subscribe(self, listener: EventListener) -> None: ...

    async def initialize(self) -> None: ...

    async def send_message(self, chat_id: str, content: str | MessageMedia, caption: str | None = None) -> None: ...

    async def destroy(self) -> None: ...


class ClientFactory(Protocol):
    def __call__(self, user_id: str, auth_dir: Path, *, headless: bool = True) -> MessagingClient: ...


def load_client_factory(import_path: str) -> ClientFactory:
    """Resolve a factory from a ``module:attribute`` import path."""
    module_path, sep, attr_name = import_path.partition(":")
    if not sep or not module_path or not attr_name:
        raise ValueError(f"Invalid client factory path: {import_path!r}, expected 'module:attribute'")
    module = importlib.import_module(module_path)
    return cast(ClientFactory, getattr(module, attr_name))
