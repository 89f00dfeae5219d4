from collections.abc import Callable

import structlog

from dbview.core.core import Service
from dbview.core.modules.property.models import Property
from dbview.core.modules.view.models import ViewSettings
from dbview.core.modules.visibility import resolver
from dbview.core.modules.visibility.resolver import VisibilityMode, VisibilityResult, VisibilityStats

logger = structlog.get_logger(__name__)

SettingsMutation = Callable[[ViewSettings, list[Property]], ViewSettings]


class ColumnVisibilityService(Service):
    """Show/hide menu operations persisted through the record store."""

    async def get_visibility(
        self, database_id: str, view_id: str, mode: VisibilityMode = VisibilityMode.EXPLICIT_LIST
    ) -> VisibilityResult:
        view = await self.core.services.store.fetch_view(database_id, view_id)
        properties = await self.core.services.store.fetch_properties(database_id, view_id)
        return resolver.resolve_visibility(properties, view.settings, mode)

    async def get_stats(self, database_id: str, view_id: str) -> VisibilityStats:
        view = await self.core.services.store.fetch_view(database_id, view_id)
        properties = await self.core.services.store.fetch_properties(database_id, view_id)
        return resolver.visibility_stats(properties, view.settings)

    async def _apply(self, database_id: str, view_id: str, operation: str, mutate: SettingsMutation) -> ViewSettings:
        """Fetch view and schema, compute new settings, save them and drop cached reads."""
        store = self.core.services.store
        with structlog.contextvars.bound_contextvars(database_id=database_id, view_id=view_id):
            view = await store.fetch_view(database_id, view_id)
            properties = await store.fetch_properties(database_id, view_id, include_hidden=True)
            settings = mutate(view.settings, properties)
            await store.update_view(database_id, view_id, {"settings": settings})
            logger.debug(
                "view_visibility_updated",
                operation=operation,
                visible=len(settings.visible_properties),
                hidden=len(settings.hidden_properties),
            )
        return settings

    async def toggle_property(
        self, database_id: str, view_id: str, property_id: str, make_visible: bool
    ) -> ViewSettings:
        return await self._apply(
            database_id,
            view_id,
            "toggle",
            lambda settings, properties: resolver.toggle_property(settings, properties, property_id, make_visible),
        )

    async def show_all(self, database_id: str, view_id: str) -> ViewSettings:
        return await self._apply(database_id, view_id, "show_all", resolver.show_all)

    async def hide_all(self, database_id: str, view_id: str) -> ViewSettings:
        return await self._apply(database_id, view_id, "hide_all", resolver.hide_all)

    async def reset_to_default(self, database_id: str, view_id: str) -> ViewSettings:
        default_ids = self.core.config.default_visible_property_ids
        return await self._apply(
            database_id,
            view_id,
            "reset",
            lambda settings, properties: resolver.reset_to_default(settings, properties, default_ids),
        )
