from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import cast

from wabroker.config import Config
from wabroker.core.modules.backend.client import ClientFactory, load_client_factory


class Service:
    """Base class for services sharing the application config."""

    def __init__(self, config: Config) -> None:
        self.config = config
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from wabroker.core.modules.media.service import MediaService  # noqa: PLC0415
    from wabroker.core.modules.messaging.service import MessagingService  # noqa: PLC0415
    from wabroker.core.modules.session.service import SessionService  # noqa: PLC0415

    session: SessionService
    media: MediaService
    messaging: MessagingService

    def __init__(self, config: Config) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []
        self._config = config

        # Service configuration: (attribute_name, module_path, class_name)
        # Stopped in reverse order, so sessions outlive the services that use them
        service_configs = [
            ("session", "wabroker.core.modules.session.service", "SessionService"),
            ("media", "wabroker.core.modules.media.service", "MediaService"),
            ("messaging", "wabroker.core.modules.messaging.service", "MessagingService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(config)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services that have cleanup logic."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, the backend client factory, and all service instances."""

    config: Config
    client_factory: ClientFactory
    services: Services

    def __init__(self, config: Config, client_factory: ClientFactory | None = None) -> None:
        """Initialize core with config, resolve the backend client factory, and register services."""
        self.config = config
        self.client_factory = client_factory or load_client_factory(config.client_factory)
        self.services = Services(config)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services, destroying every live backend client."""
        await self.services.stop_all()
