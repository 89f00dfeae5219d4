from typing import Any

import structlog

from dbview.core.core import Service
from dbview.core.modules.property.models import Property
from dbview.core.modules.record.models import Record
from dbview.core.modules.store.cache import QueryCache
from dbview.core.modules.store.models import RecordPage, RecordQuery
from dbview.core.modules.store.protocol import RecordStore
from dbview.core.modules.view.models import View

logger = structlog.get_logger(__name__)


class StoreService(Service):
    """Record store access with cached reads.

    Implements the RecordStore protocol itself, so sessions can use it in place of the raw store.
    Every successful write drops the cached reads of its database.
    """

    def __init__(self, store: RecordStore) -> None:
        super().__init__(store)
        self.cache = QueryCache()

    async def on_stop(self) -> None:
        self.cache.clear()

    async def fetch_records(self, database_id: str, query: RecordQuery) -> RecordPage:
        key = ("records", query.model_dump_json())
        return await self.cache.get_or_fetch(database_id, key, lambda: self.store.fetch_records(database_id, query))

    async def fetch_all_records(self, database_id: str, view_id: str | None = None) -> list[Record]:
        """Every non-archived record of a database, unfiltered, in store order."""
        records: list[Record] = []
        page = 1
        limit = self.core.config.max_page_size
        while True:
            # Empty filter and sort lists so saved view settings are not applied by the store
            query = RecordQuery(view_id=view_id, filters=[], sorts=[], page=page, limit=limit)
            result = await self.fetch_records(database_id, query)
            records.extend(result.records)
            if not result.has_next:
                return records
            page += 1

    async def fetch_properties(
        self, database_id: str, view_id: str | None = None, include_hidden: bool = True
    ) -> list[Property]:
        key = ("properties", view_id, include_hidden)
        return await self.cache.get_or_fetch(
            database_id, key, lambda: self.store.fetch_properties(database_id, view_id, include_hidden)
        )

    async def fetch_view(self, database_id: str, view_id: str) -> View:
        key = ("view", view_id)
        return await self.cache.get_or_fetch(database_id, key, lambda: self.store.fetch_view(database_id, view_id))

    async def update_view(self, database_id: str, view_id: str, changes: dict[str, Any]) -> View:
        view = await self.store.update_view(database_id, view_id, changes)
        self.cache.invalidate(database_id)
        return view

    async def update_record(self, database_id: str, record_id: str, properties: dict[str, Any]) -> Record:
        record = await self.store.update_record(database_id, record_id, properties)
        self.cache.invalidate(database_id)
        return record
