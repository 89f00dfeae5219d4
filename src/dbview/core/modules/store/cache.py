from collections.abc import Awaitable, Callable, Hashable
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


class QueryCache:
    """Cache of record store reads, keyed by database id plus a query key.

    Any write to a database invalidates every cached read of that database.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[Hashable, Any]] = {}

    async def get_or_fetch[T](self, database_id: str, key: Hashable, fetch: Callable[[], Awaitable[T]]) -> T:
        entries = self._entries.setdefault(database_id, {})
        if key in entries:
            return entries[key]  # type: ignore[no-any-return]
        value = await fetch()
        entries[key] = value
        return value

    def invalidate(self, database_id: str) -> None:
        dropped = len(self._entries.pop(database_id, {}))
        logger.debug("query_cache_invalidated", database_id=database_id, dropped=dropped)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())
