"""Record store kept in process memory, used by tests and the demo server."""

import asyncio
from pathlib import Path
from typing import Any

import structlog
from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from dbview.core.models import CamelModel
from dbview.core.modules.filter.evaluator import filter_records
from dbview.core.modules.filter.search import matches_search
from dbview.core.modules.property.models import Property, Schema
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.engine import sort_records
from dbview.core.modules.store.models import RecordPage, RecordQuery
from dbview.core.modules.view.models import View, get_view
from dbview.core.modules.visibility.resolver import VisibilityMode, resolve_visibility
from dbview.errors import NotFoundError, PersistenceError
from dbview.utils import now

logger = structlog.get_logger(__name__)

VIEW_CHANGE_KEYS = frozenset({"settings", "filters", "sorts", "name", "type"})


class Database(CamelModel):
    """Complete state of one database."""

    id: str
    name: str = ""
    properties: list[Property] = Field(default_factory=list)
    views: list[View] = Field(default_factory=list)
    records: list[Record] = Field(default_factory=list)


class InMemoryRecordStore:
    """RecordStore over in-memory databases.

    Everything returned is a deep copy, so callers never share state with the store.
    Writes can be made to fail for tests with fail_writes, and every call can be slowed
    down with delay.
    """

    def __init__(self, databases: list[Database] | None = None, delay: float = 0.0) -> None:
        self._databases: dict[str, Database] = {}
        self.delay = delay
        self.fail_writes = False
        self.view_updates: list[tuple[str, str, dict[str, Any]]] = []  # Applied view writes, in order
        self.record_updates: list[tuple[str, str, dict[str, Any]]] = []  # Applied record writes, in order
        for database in databases or []:
            self.add_database(database)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "InMemoryRecordStore":
        """Store seeded from a JSON file holding a list of databases."""
        databases = TypeAdapter(list[Database]).validate_json(Path(path).read_bytes())
        logger.debug("store_seeded", path=str(path), databases=len(databases))
        return cls(databases)

    def add_database(self, database: Database) -> None:
        Schema(database.properties)  # Rejects duplicate property ids
        self._databases[database.id] = database.model_copy(deep=True)

    def _get_database(self, database_id: str) -> Database:
        if database_id not in self._databases:
            raise NotFoundError(f"Database '{database_id}' not found")
        return self._databases[database_id]

    async def _pause(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)

    def _check_writable(self, operation: str) -> None:
        if self.fail_writes:
            logger.warning("store_write_rejected", operation=operation)
            raise PersistenceError

    async def fetch_records(self, database_id: str, query: RecordQuery) -> RecordPage:
        await self._pause()
        database = self._get_database(database_id)
        schema = Schema(database.properties)

        records = [record for record in database.records if not record.is_archived]
        if query.search.strip():
            records = [record for record in records if matches_search(record, query.search, schema)]
        view = get_view(database.views, query.view_id) if query.view_id is not None else None
        filters = query.filters if query.filters is not None else (view.filters if view else [])
        sorts = query.sorts if query.sorts is not None else (view.sorts if view else [])
        records = sort_records(filter_records(records, filters, schema), sorts, schema)

        page = records[query.offset : query.offset + query.limit]
        return RecordPage(
            records=[record.model_copy(deep=True) for record in page],
            total=len(records),
            has_next=query.offset + len(page) < len(records),
        )

    async def fetch_properties(
        self, database_id: str, view_id: str | None = None, include_hidden: bool = True
    ) -> list[Property]:
        await self._pause()
        database = self._get_database(database_id)
        properties = database.properties
        if not include_hidden and view_id is not None:
            view = get_view(database.views, view_id)
            properties = resolve_visibility(properties, view.settings, VisibilityMode.EXPLICIT_LIST).visible
        return [prop.model_copy(deep=True) for prop in properties]

    async def fetch_view(self, database_id: str, view_id: str) -> View:
        await self._pause()
        return get_view(self._get_database(database_id).views, view_id).model_copy(deep=True)

    async def update_view(self, database_id: str, view_id: str, changes: dict[str, Any]) -> View:
        await self._pause()
        self._check_writable("update_view")
        database = self._get_database(database_id)
        view = get_view(database.views, view_id)

        unknown = set(changes) - VIEW_CHANGE_KEYS
        if unknown:
            raise PersistenceError(f"Cannot update view fields: {', '.join(sorted(unknown))}")
        try:
            updated = View.model_validate({**view.model_dump(), **changes})
        except PydanticValidationError as e:
            raise PersistenceError(f"Invalid view update: {e.error_count()} error(s)") from e

        database.views = [updated if v.id == view_id else v for v in database.views]
        self.view_updates.append((database_id, view_id, changes))
        logger.debug("view_updated", database_id=database_id, view_id=view_id, fields=sorted(changes))
        return updated.model_copy(deep=True)

    async def update_record(self, database_id: str, record_id: str, properties: dict[str, Any]) -> Record:
        await self._pause()
        self._check_writable("update_record")
        database = self._get_database(database_id)
        for index, record in enumerate(database.records):
            if record.id == record_id:
                updated = record.model_copy(
                    update={"properties": {**record.properties, **properties}, "updated_at": now()}, deep=True
                )
                database.records[index] = updated
                self.record_updates.append((database_id, record_id, properties))
                logger.debug("record_updated", database_id=database_id, record_id=record_id, fields=sorted(properties))
                return updated.model_copy(deep=True)
        raise NotFoundError(f"Record '{record_id}' not found")
