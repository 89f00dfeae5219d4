"""Stateful, asyncio-based session over one view of a database.

The session keeps the records loaded so far, the local query state and the last confirmed
cell values, and talks to the record store. Materialization itself stays pure.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.filter.validators import validate_filter_condition
from dbview.core.modules.grouping.engine import move_record, select_grouping_property
from dbview.core.modules.property.models import Property, Schema
from dbview.core.modules.property.normalizers import normalize
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig
from dbview.core.modules.store.models import RecordQuery
from dbview.core.modules.store.protocol import RecordStore
from dbview.core.modules.view.materializer import MaterializedView, materialize
from dbview.core.modules.view.models import View, ViewQueryState
from dbview.errors import NotFoundError, UserError, ValidationError

logger = structlog.get_logger(__name__)

ErrorCallback = Callable[[Exception], None] | Callable[[Exception], Awaitable[None]]


class ViewSession:
    """Client-side state of one open view.

    Ordering guarantees:
        - save_cell skips the write when the value equals the last confirmed one
        - set_filters/set_sorts change local state at once; saves of the same field run one at
          a time and a save superseded before it starts is dropped, so the stored value ends
          up being the last one set
        - move_record updates local records at once and persists in the background; failures
          go to the error callback and are not rolled back
        - pages load one at a time; a page that arrives after switch_view or reload is discarded
    """

    def __init__(
        self,
        store: RecordStore,
        database_id: str,
        view_id: str,
        default_page_size: int = 50,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.store = store
        self.database_id = database_id
        self.view_id = view_id
        self.default_page_size = default_page_size
        self.on_error = on_error

        self.view: View | None = None
        self.properties: list[Property] = []
        self.records: list[Record] = []
        self.state = ViewQueryState()
        self.total = 0
        self.has_more = False

        self._loaded_pages = 0
        self._generation = 0  # bumped when the view or the query changes
        self._load_lock = asyncio.Lock()
        self._fetch_task: asyncio.Task[Any] | None = None
        self._confirmed: dict[tuple[str, str], Any] = {}  # (record id, property id) -> last stored value
        self._save_lock = asyncio.Lock()
        self._save_generations: dict[str, int] = {}  # view field -> generation of the latest save
        self._background: set[asyncio.Task[None]] = set()

    @property
    def page_size(self) -> int:
        if self.view is not None and self.view.settings.page_size:
            return self.view.settings.page_size
        return self.default_page_size

    @property
    def loaded_pages(self) -> int:
        return self._loaded_pages

    def _require_view(self) -> View:
        if self.view is None:
            raise RuntimeError("Session not opened")
        return self.view

    # --- Loading ---

    async def open(self) -> None:
        """Load the view, its schema and the first page of records."""
        generation = self._generation
        view = await self.store.fetch_view(self.database_id, self.view_id)
        properties = await self.store.fetch_properties(self.database_id, self.view_id, include_hidden=True)
        if generation != self._generation:
            return
        self.view = view
        self.properties = properties
        self.state = ViewQueryState.from_view(view)
        await self.reload()

    async def reload(self) -> None:
        """Drop loaded records and fetch the first page for the current query state."""
        self._abandon_fetch()
        self.records = []
        self._confirmed = {}
        self._loaded_pages = 0
        self.total = 0
        self.has_more = True
        await self.load_more()

    def _query(self, page: int) -> RecordQuery:
        return RecordQuery(
            view_id=self.view_id,
            search=self.state.search,
            filters=self.state.filters,
            sorts=self.state.sorts,
            page=page,
            limit=self.page_size,
        )

    async def load_more(self) -> bool:
        """Fetch and append the next page.

        Returns:
            False when nothing more was loaded, including a page discarded because the view
            was switched or reloaded while it was in flight
        """
        generation = self._generation
        async with self._load_lock:
            if generation != self._generation or not self.has_more:
                return False

            page_number = self._loaded_pages + 1
            task = asyncio.create_task(self.store.fetch_records(self.database_id, self._query(page_number)))
            self._fetch_task = task
            try:
                page = await task
            except asyncio.CancelledError:
                if generation != self._generation:
                    logger.debug("page_fetch_cancelled", database_id=self.database_id, view_id=self.view_id)
                    return False
                raise
            finally:
                if self._fetch_task is task:
                    self._fetch_task = None

            if generation != self._generation:
                logger.debug("stale_page_discarded", database_id=self.database_id, view_id=self.view_id)
                return False

            loaded_ids = {record.id for record in self.records}
            for record in page.records:
                if record.id in loaded_ids:
                    continue
                self.records.append(record)
                for property_id, value in record.properties.items():
                    self._confirmed[(record.id, property_id)] = value
            self._loaded_pages = page_number
            self.total = page.total
            self.has_more = page.has_next
            return True

    def _abandon_fetch(self) -> None:
        self._generation += 1
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._fetch_task = None

    async def switch_view(self, view_id: str) -> None:
        """Open another view of the same database, abandoning any in-flight page fetch."""
        self._abandon_fetch()
        self.view_id = view_id
        self.view = None
        self.records = []
        await self.open()

    def materialize(self) -> MaterializedView:
        """Materialize the records loaded so far with the local query state."""
        view = self._require_view()
        state = self.state.model_copy(update={"page": max(self._loaded_pages, 1)})
        result = materialize(self.records, self.properties, view, state, self.default_page_size)
        return result.model_copy(update={"total": max(self.total, result.total), "has_more": self.has_more})

    # --- Edits ---

    def _find_record(self, record_id: str) -> tuple[int, Record]:
        for index, record in enumerate(self.records):
            if record.id == record_id:
                return index, record
        raise NotFoundError(f"Record '{record_id}' not found")

    async def save_cell(self, record_id: str, property_id: str, value: Any) -> bool:
        """Persist one cell edit.

        Returns:
            False when the value equals the last confirmed value and nothing was written
        """
        index, record = self._find_record(record_id)
        key = (record_id, property_id)
        if key in self._confirmed and self._confirmed[key] == value:
            logger.debug("cell_save_skipped", record_id=record_id, property_id=property_id)
            return False
        if key not in self._confirmed and value is None and record.properties.get(property_id) is None:
            return False

        self.records[index] = record.with_value(property_id, value)
        await self.store.update_record(self.database_id, record_id, {property_id: value})
        self._confirmed[key] = value
        return True

    async def _save_view_field(self, field: str, value: Any) -> bool:
        generation = self._save_generations.get(field, 0) + 1
        self._save_generations[field] = generation
        async with self._save_lock:
            if self._save_generations[field] != generation:
                logger.debug("view_save_superseded", view_id=self.view_id, field=field)
                return False
            await self.store.update_view(self.database_id, self.view_id, {field: value})
            return True

    async def set_filters(self, filters: list[FilterCondition]) -> bool:
        """Replace the view filters locally and save them.

        Returns:
            False when a newer filter save superseded this one before it ran
        """
        schema = Schema(self.properties)
        validated = [validate_filter_condition(condition, schema) for condition in filters]
        self.state = self.state.model_copy(update={"filters": validated})
        return await self._save_view_field("filters", [condition.to_wire() for condition in validated])

    async def set_sorts(self, sorts: list[SortConfig]) -> bool:
        """Replace the view sorts locally and save them.

        Returns:
            False when a newer sort save superseded this one before it ran
        """
        schema = Schema(self.properties)
        for sort in sorts:
            if schema.get(sort.property_id) is None:
                raise ValidationError(f"Property '{sort.property_id}' not found")
        self.state = self.state.model_copy(update={"sorts": list(sorts)})
        return await self._save_view_field("sorts", [sort.to_wire() for sort in sorts])

    def set_search(self, search: str) -> None:
        self.state = self.state.model_copy(update={"search": search})

    def move_record(self, record_id: str, target_group_id: str) -> asyncio.Future[None]:
        """Move a record to another bucket right away and persist it in the background.

        Moving a record into the bucket it is already in writes nothing; the returned future
        is then already done.

        Raises:
            ValidationError: If the view has no grouping property or the bucket does not exist
        """
        view = self._require_view()
        grouping_property = select_grouping_property(self.properties, view.settings)
        if grouping_property is None:
            raise ValidationError("View has no grouping property")

        index, record = self._find_record(record_id)
        moved = move_record(record, grouping_property, target_group_id)
        value = moved.properties[grouping_property.id]
        if normalize(grouping_property, record.raw_value(grouping_property)) == value:
            logger.debug("record_move_skipped", record_id=record_id, group_id=target_group_id)
            done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
            done.set_result(None)
            return done

        self.records[index] = moved
        task = asyncio.create_task(self._persist_move(record_id, grouping_property.id, value))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _persist_move(self, record_id: str, property_id: str, value: Any) -> None:
        try:
            await self.store.update_record(self.database_id, record_id, {property_id: value})
        except UserError as e:
            logger.warning("record_move_failed", record_id=record_id, property_id=property_id, error=str(e))
            await self._report(e)
            return
        self._confirmed[(record_id, property_id)] = value

    async def _report(self, error: Exception) -> None:
        if self.on_error is None:
            return
        result = self.on_error(error)
        if inspect.isawaitable(result):
            await result

    async def close(self) -> None:
        """Wait for background saves and cancel an in-flight fetch."""
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
