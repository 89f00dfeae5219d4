from collections.abc import AsyncGenerator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from dbview.config import Config
from dbview.core.core import Core
from dbview.core.modules.filter.adhoc import parse_filter_query
from dbview.core.modules.filter.models import FilterCondition, FilterOperator, get_operator_table
from dbview.core.modules.property.models import Property, PropertyType, Schema
from dbview.core.modules.record.ingest import ingest_records
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig
from dbview.core.modules.store.protocol import RecordStore
from dbview.core.modules.view.materializer import MaterializedView, materialize
from dbview.core.modules.view.models import View, ViewQueryState, ViewSettings
from dbview.core.modules.view.session import ErrorCallback, ViewSession
from dbview.core.modules.visibility.resolver import VisibilityMode, VisibilityResult, VisibilityStats


class App:
    """Facade for all application operations, delegating to Core services."""

    def __init__(self, config: Config, store: RecordStore | None = None) -> None:
        self._core = Core(config, store)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    @property
    def config(self) -> Config:
        return self._core.config

    def materialize_snapshot(
        self,
        records: list[Mapping[str, Any]],
        properties: list[Property],
        view: View,
        state: ViewQueryState | None = None,
    ) -> MaterializedView:
        """Materialize a caller-supplied snapshot. Record values may be keyed by property id or name."""
        snapshot = ingest_records(records, properties)
        return materialize(snapshot, properties, view, state, self._core.config.default_page_size)

    async def materialize_view(
        self, database_id: str, view_id: str, state: ViewQueryState | None = None, adhoc_query: str | None = None
    ) -> MaterializedView:
        """Materialize a saved view, optionally narrowed by an ad-hoc filter query."""
        if adhoc_query:
            view = await self._core.services.store.fetch_view(database_id, view_id)
            properties = await self._core.services.store.fetch_properties(database_id, view_id)
            extra = parse_filter_query(adhoc_query, Schema(properties))
            base = state or ViewQueryState.from_view(view)
            state = base.model_copy(update={"filters": [*base.filters, *extra]})
        return await self._core.services.view.materialize_view(database_id, view_id, state)

    async def get_view(self, database_id: str, view_id: str) -> View:
        return await self._core.services.store.fetch_view(database_id, view_id)

    async def get_properties(self, database_id: str, view_id: str | None = None) -> list[Property]:
        return await self._core.services.store.fetch_properties(database_id, view_id)

    async def get_visibility(self, database_id: str, view_id: str, mode: VisibilityMode) -> VisibilityResult:
        return await self._core.services.visibility.get_visibility(database_id, view_id, mode)

    async def get_visibility_stats(self, database_id: str, view_id: str) -> VisibilityStats:
        return await self._core.services.visibility.get_stats(database_id, view_id)

    async def toggle_property(self, database_id: str, view_id: str, property_id: str, make_visible: bool) -> ViewSettings:
        """Show or hide one column (system and required columns cannot be hidden)."""
        return await self._core.services.visibility.toggle_property(database_id, view_id, property_id, make_visible)

    async def show_all_properties(self, database_id: str, view_id: str) -> ViewSettings:
        return await self._core.services.visibility.show_all(database_id, view_id)

    async def hide_all_properties(self, database_id: str, view_id: str) -> ViewSettings:
        return await self._core.services.visibility.hide_all(database_id, view_id)

    async def reset_properties_to_default(self, database_id: str, view_id: str) -> ViewSettings:
        return await self._core.services.visibility.reset_to_default(database_id, view_id)

    async def set_view_filters(self, database_id: str, view_id: str, filters: list[FilterCondition]) -> View:
        return await self._core.services.view.set_filters(database_id, view_id, filters)

    async def set_view_sorts(self, database_id: str, view_id: str, sorts: list[SortConfig]) -> View:
        return await self._core.services.view.set_sorts(database_id, view_id, sorts)

    async def update_cell(self, database_id: str, record_id: str, property_id: str, value: Any) -> Record:
        return await self._core.services.view.update_cell(database_id, record_id, property_id, value)

    async def move_record(self, database_id: str, view_id: str, record_id: str, target_group_id: str) -> Record:
        """Move a record to another group of a board/list view."""
        return await self._core.services.view.move_record(database_id, view_id, record_id, target_group_id)

    async def open_session(self, database_id: str, view_id: str, on_error: ErrorCallback | None = None) -> ViewSession:
        return await self._core.services.view.open_session(database_id, view_id, on_error)

    def get_property_operators(self) -> dict[PropertyType, list[FilterOperator]]:
        """Valid filter operators per property type."""
        return get_operator_table()
