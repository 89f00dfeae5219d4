from typing import Any, Protocol

from dbview.core.modules.property.models import Property
from dbview.core.modules.record.models import Record
from dbview.core.modules.store.models import RecordPage, RecordQuery
from dbview.core.modules.view.models import View


class RecordStore(Protocol):
    """Collaborator that owns databases, their schemas, views and records.

    Write methods raise PersistenceError when the change is rejected.
    """

    async def fetch_records(self, database_id: str, query: RecordQuery) -> RecordPage: ...

    async def fetch_properties(
        self, database_id: str, view_id: str | None = None, include_hidden: bool = True
    ) -> list[Property]: ...

    async def fetch_view(self, database_id: str, view_id: str) -> View: ...

    async def update_view(self, database_id: str, view_id: str, changes: dict[str, Any]) -> View: ...

    async def update_record(self, database_id: str, record_id: str, properties: dict[str, Any]) -> Record: ...
