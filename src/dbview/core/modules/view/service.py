from typing import Any

import structlog

from dbview.core.core import Service
from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.filter.validators import validate_filter_condition
from dbview.core.modules.grouping.engine import group_value, select_grouping_property
from dbview.core.modules.property.models import Schema
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig
from dbview.core.modules.view.materializer import MaterializedView, materialize
from dbview.core.modules.view.models import View, ViewQueryState
from dbview.core.modules.view.session import ErrorCallback, ViewSession
from dbview.errors import ValidationError

logger = structlog.get_logger(__name__)


class ViewService(Service):
    """Store-backed view operations: materialization, saved filters and sorts, record edits."""

    async def materialize_view(
        self, database_id: str, view_id: str, state: ViewQueryState | None = None
    ) -> MaterializedView:
        """Materialize a saved view over every record of its database."""
        store = self.core.services.store
        with structlog.contextvars.bound_contextvars(database_id=database_id, view_id=view_id):
            view = await store.fetch_view(database_id, view_id)
            properties = await store.fetch_properties(database_id, view_id)
            records = await store.fetch_all_records(database_id, view_id)
            return materialize(records, properties, view, state, self.core.config.default_page_size)

    async def set_filters(self, database_id: str, view_id: str, filters: list[FilterCondition]) -> View:
        """Validate and save the filters of a view.

        Raises:
            ValidationError: If a condition does not fit the current schema
        """
        store = self.core.services.store
        schema = Schema(await store.fetch_properties(database_id, view_id))
        validated = [validate_filter_condition(condition, schema) for condition in filters]
        return await store.update_view(
            database_id, view_id, {"filters": [condition.to_wire() for condition in validated]}
        )

    async def set_sorts(self, database_id: str, view_id: str, sorts: list[SortConfig]) -> View:
        store = self.core.services.store
        schema = Schema(await store.fetch_properties(database_id, view_id))
        for sort in sorts:
            if schema.get(sort.property_id) is None:
                raise ValidationError(f"Property '{sort.property_id}' not found")
        return await store.update_view(database_id, view_id, {"sorts": [sort.to_wire() for sort in sorts]})

    async def update_cell(self, database_id: str, record_id: str, property_id: str, value: Any) -> Record:
        store = self.core.services.store
        if Schema(await store.fetch_properties(database_id)).get(property_id) is None:
            raise ValidationError(f"Property '{property_id}' not found")
        return await store.update_record(database_id, record_id, {property_id: value})

    async def move_record(self, database_id: str, view_id: str, record_id: str, target_group_id: str) -> Record:
        """Place a record in another bucket of the view's grouping property.

        Raises:
            ValidationError: If the view has no grouping property or the bucket does not exist
        """
        store = self.core.services.store
        view = await store.fetch_view(database_id, view_id)
        properties = await store.fetch_properties(database_id, view_id)
        grouping_property = select_grouping_property(properties, view.settings)
        if grouping_property is None:
            raise ValidationError("View has no grouping property")
        value = group_value(grouping_property, target_group_id)
        logger.debug("record_moved", record_id=record_id, property_id=grouping_property.id, group=target_group_id)
        return await store.update_record(database_id, record_id, {grouping_property.id: value})

    async def open_session(self, database_id: str, view_id: str, on_error: ErrorCallback | None = None) -> ViewSession:
        """Open a session over a view with its first page loaded."""
        session = ViewSession(
            self.core.services.store,
            database_id,
            view_id,
            default_page_size=self.core.config.default_page_size,
            on_error=on_error,
        )
        await session.open()
        return session
