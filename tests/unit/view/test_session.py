"""Tests for the asyncio view session."""

import asyncio

import pytest

from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.property.models import Property, PropertyType
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig
from dbview.core.modules.store.memory import Database, InMemoryRecordStore
from dbview.core.modules.view.models import View
from dbview.core.modules.view.session import ViewSession
from dbview.errors import PersistenceError, ValidationError


async def open_session(store, view_id="table", **kwargs):
    session = ViewSession(store, "db", view_id, default_page_size=2, **kwargs)
    await session.open()
    return session


def numbered_store(count):
    """Store whose only database holds records r1..r<count> in order."""
    database = Database(
        id="db",
        properties=[Property(id="title", name="Title", type=PropertyType.TEXT)],
        views=[View(id="table", name="All")],
        records=[Record(id=f"r{n}", properties={"title": f"Item {n}"}) for n in range(1, count + 1)],
    )
    return InMemoryRecordStore([database], delay=0.01)


class TestLoading:
    @pytest.mark.asyncio
    async def test_open_loads_first_page(self, store):
        session = await open_session(store)

        assert [r.id for r in session.records] == ["r1", "r2"]
        assert session.total == 4
        assert session.has_more is True
        assert session.loaded_pages == 1

    @pytest.mark.asyncio
    async def test_load_more_appends(self, store):
        session = await open_session(store)

        assert await session.load_more() is True
        assert [r.id for r in session.records] == ["r1", "r2", "r3", "r4"]
        assert session.has_more is False
        assert await session.load_more() is False

        result = session.materialize()
        assert result.page == 2
        assert len(result.rows) == 4
        assert result.has_more is False

    @pytest.mark.asyncio
    async def test_materialize_keeps_store_total(self, store):
        session = await open_session(store)
        result = session.materialize()
        assert len(result.rows) == 2
        assert result.total == 4
        assert result.has_more is True

    @pytest.mark.asyncio
    async def test_search_reload(self, store):
        session = await open_session(store)
        session.set_search("groceries")
        await session.reload()
        assert [r.id for r in session.records] == ["r2"]
        assert session.has_more is False

    @pytest.mark.asyncio
    async def test_switch_view_discards_in_flight_page(self, store):
        """Test that a page requested for the previous view never lands in the new one."""
        session = await open_session(store)
        store.delay = 0.05

        pending = asyncio.create_task(session.load_more())
        await asyncio.sleep(0)
        await session.switch_view("board")

        assert await pending is False
        assert session.view.id == "board"
        assert [r.id for r in session.records] == ["r1", "r2"]
        assert session.loaded_pages == 1

    @pytest.mark.asyncio
    async def test_concurrent_load_more_loads_consecutive_pages(self):
        """Test that overlapping load_more calls each append the next page without gaps."""
        session = await open_session(numbered_store(8))

        results = await asyncio.gather(session.load_more(), session.load_more())

        assert results == [True, True]
        assert [r.id for r in session.records] == ["r1", "r2", "r3", "r4", "r5", "r6"]
        assert session.loaded_pages == 3

        while await session.load_more():
            pass
        assert [r.id for r in session.records] == [f"r{n}" for n in range(1, 9)]
        assert session.loaded_pages == 4
        assert session.has_more is False

    @pytest.mark.asyncio
    async def test_reload_discards_page_from_previous_query(self, store):
        """Test that a page fetched under the old search never lands after a reload."""
        session = await open_session(store)
        store.delay = 0.05

        pending = asyncio.create_task(session.load_more())
        await asyncio.sleep(0)
        session.set_search("bike")
        await session.reload()

        assert await pending is False
        assert [r.id for r in session.records] == ["r4"]
        assert session.loaded_pages == 1
        assert session.has_more is False


class TestCellEdits:
    @pytest.mark.asyncio
    async def test_unchanged_value_is_not_saved(self, store):
        session = await open_session(store)

        assert await session.save_cell("r1", "title", "Write report") is False
        assert store.record_updates == []

    @pytest.mark.asyncio
    async def test_changed_value_is_saved_once(self, store):
        session = await open_session(store)

        assert await session.save_cell("r1", "title", "Write summary") is True
        assert await session.save_cell("r1", "title", "Write summary") is False
        assert store.record_updates == [("db", "r1", {"title": "Write summary"})]
        assert session.records[0].properties["title"] == "Write summary"

    @pytest.mark.asyncio
    async def test_clearing_missing_value_is_skipped(self, store):
        session = await open_session(store)
        assert await session.save_cell("r1", "notes", None) is False


class TestViewSaves:
    @pytest.mark.asyncio
    async def test_last_filter_save_wins(self, store):
        """Test that concurrent filter saves end with the last value stored."""
        session = await open_session(store)
        store.delay = 0.01
        values = ["todo", "doing", "done"]

        results = await asyncio.gather(
            *(session.set_filters([FilterCondition(property="status", condition="is", value=v)]) for v in values)
        )

        assert results == [True, False, True]
        assert len(store.view_updates) == 2
        saved = await store.fetch_view("db", "table")
        assert saved.filters[0].value == "done"
        assert session.state.filters[0].value == "done"

    @pytest.mark.asyncio
    async def test_invalid_filter_rejected_before_save(self, store):
        session = await open_session(store)
        with pytest.raises(ValidationError):
            await session.set_filters([FilterCondition(property="status", condition="is", value="blocked")])
        assert store.view_updates == []

    @pytest.mark.asyncio
    async def test_sorts(self, store):
        session = await open_session(store)
        assert await session.set_sorts([SortConfig(property_id="title")]) is True
        with pytest.raises(ValidationError, match="Property 'ghost' not found"):
            await session.set_sorts([SortConfig(property_id="ghost")])


class TestMoveRecord:
    @pytest.mark.asyncio
    async def test_optimistic_move(self, store):
        session = await open_session(store, "board")

        task = session.move_record("r1", "done")
        assert session.records[0].properties["status"] == "done"
        await task

        assert store.record_updates == [("db", "r1", {"status": "done"})]
        groups = session.materialize().groups
        assert [r.id for r in groups[2].records] == ["r1", "r2"]

    @pytest.mark.asyncio
    async def test_failed_move_reported_without_rollback(self, store):
        errors = []
        session = await open_session(store, "board", on_error=errors.append)
        store.fail_writes = True

        await session.move_record("r1", "done")

        assert len(errors) == 1
        assert isinstance(errors[0], PersistenceError)
        assert session.records[0].properties["status"] == "done"

    @pytest.mark.asyncio
    async def test_async_error_callback(self, store):
        errors = []

        async def on_error(error):
            errors.append(error)

        session = await open_session(store, "board", on_error=on_error)
        store.fail_writes = True
        session.move_record("r2", "todo")
        await session.close()

        assert len(errors) == 1

    @pytest.mark.asyncio
    async def test_move_to_current_group_is_not_saved(self, store):
        """Test that moving a record into its own bucket writes nothing, embedded options included."""
        session = await open_session(store, "board")

        await session.move_record("r1", "todo")
        await session.move_record("r2", "done")

        assert store.record_updates == []
        assert session.records[1].properties["status"] == {"id": "done", "label": "Done", "color": "#10b981"}

    @pytest.mark.asyncio
    async def test_unknown_group(self, store):
        session = await open_session(store, "board")
        with pytest.raises(ValidationError):
            session.move_record("r1", "blocked")
        assert store.record_updates == []
