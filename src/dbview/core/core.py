from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, cast

import structlog

from dbview.config import Config

if TYPE_CHECKING:
    from dbview.core.modules.store.protocol import RecordStore
    from dbview.core.modules.store.service import StoreService
    from dbview.core.modules.view.service import ViewService
    from dbview.core.modules.visibility.service import ColumnVisibilityService

logger = structlog.get_logger(__name__)


class Service:
    """Base class for services with access to the record store."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store
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

    store: StoreService
    visibility: ColumnVisibilityService
    view: ViewService

    def __init__(self, store: RecordStore) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters for initialization - store must be first
        service_configs = [
            ("store", "dbview.core.modules.store.service", "StoreService"),
            ("visibility", "dbview.core.modules.visibility.service", "ColumnVisibilityService"),
            ("view", "dbview.core.modules.view.service", "ViewService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(store)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, the record store, and all service instances."""

    config: Config
    store: RecordStore
    services: Services

    def __init__(self, config: Config, store: RecordStore | None = None) -> None:
        """Initialize core with config and a record store, and auto-register services.

        Without a store, an empty in-memory store is used.
        """
        if store is None:
            from dbview.core.modules.store.memory import InMemoryRecordStore  # noqa: PLC0415

            store = InMemoryRecordStore()
        self.config = config
        self.store = store
        self.services = Services(store)
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
        logger.debug("core_started", store=type(self.store).__name__)

    async def on_stop(self) -> None:
        await self.services.stop_all()
