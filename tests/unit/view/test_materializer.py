"""Tests for view materialization."""

from datetime import UTC, datetime

from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.sort.models import SortConfig, SortDirection
from dbview.core.modules.view.materializer import materialize
from dbview.core.modules.view.models import View, ViewQueryState, ViewSettings, ViewType

NOW = datetime(2024, 3, 10, tzinfo=UTC)


def row_ids(result):
    return [row.id for row in result.rows]


class TestPagination:
    def test_first_page(self, records, properties, views):
        result = materialize(records, properties, views[0], default_page_size=2)

        assert row_ids(result) == ["r1", "r2"]
        assert result.total == 4
        assert result.page == 1
        assert result.page_size == 2
        assert result.has_more is True

    def test_pages_accumulate(self, records, properties, views):
        """Test that page 2 keeps the rows of page 1 in front."""
        first = materialize(records, properties, views[0], ViewQueryState(page=1), default_page_size=3)
        second = materialize(records, properties, views[0], ViewQueryState(page=2), default_page_size=3)

        assert row_ids(second)[: len(first.rows)] == row_ids(first)
        assert row_ids(second) == ["r1", "r2", "r3", "r4"]
        assert second.has_more is False

    def test_view_page_size_wins(self, records, properties):
        view = View(id="v", settings=ViewSettings(page_size=1))
        assert row_ids(materialize(records, properties, view, default_page_size=50)) == ["r1"]


class TestPipeline:
    """Tests for the filter, sort and search stages."""

    def test_view_filters_and_sorts(self, records, properties):
        view = View(
            id="v",
            filters=[FilterCondition(property="tags", condition="contains", value="home")],
            sorts=[SortConfig(property_id="estimate", direction=SortDirection.DESC)],
        )
        result = materialize(records, properties, view, current_time=NOW)
        assert row_ids(result) == ["r4", "r2"]
        assert result.total == 2

    def test_state_overrides_view(self, records, properties):
        """Test that the query state replaces the saved filters and sorts."""
        view = View(id="v", filters=[FilterCondition(property="status", condition="is", value="todo")])
        state = ViewQueryState(sorts=[SortConfig(property_id="title")])
        assert row_ids(materialize(records, properties, view, state)) == ["r2", "r4", "r3", "r1"]

    def test_search(self, records, properties, views):
        state = ViewQueryState(search="bike")
        assert row_ids(materialize(records, properties, views[0], state)) == ["r4"]

    def test_archived_records_dropped(self, records, properties, views):
        records[1] = records[1].model_copy(update={"is_archived": True})
        result = materialize(records, properties, views[0])
        assert row_ids(result) == ["r1", "r3", "r4"]

    def test_input_untouched(self, records, properties, views):
        before = [r.model_copy(deep=True) for r in records]
        materialize(records, properties, views[1], ViewQueryState(sorts=[SortConfig(property_id="title")]))
        assert records == before


class TestColumns:
    def test_view_column_list(self, records, properties, views):
        result = materialize(records, properties, views[1])
        assert [c.id for c in result.columns] == ["title", "status"]
        assert result.rows[0].cells == {"title": "Write report", "status": "todo"}

    def test_state_column_list(self, records, properties, views):
        result = materialize(records, properties, views[1], ViewQueryState(visible_properties=["tags"]))
        assert [c.id for c in result.columns] == ["tags"]

    def test_default_fallback(self, records, properties, views):
        """Test that a view without a column list shows properties flagged visible."""
        result = materialize(records, properties, views[0])
        assert "notes" not in [c.id for c in result.columns]
        assert len(result.columns) == 6


class TestViewTypes:
    def test_board_groups_cover_all_matching_records(self, records, properties, views):
        """Test that groups span every match while rows stop at the loaded page."""
        result = materialize(records, properties, views[1], default_page_size=2)

        assert len(result.rows) == 2
        assert sum(g.count for g in result.groups) == 4
        assert [g.id for g in result.groups] == ["todo", "doing", "done", "ungrouped"]

    def test_table_has_no_groups(self, records, properties, views):
        result = materialize(records, properties, views[0])
        assert result.groups is None
        assert result.entries is None

    def test_calendar_entries(self, records, properties):
        result = materialize(records, properties, View(id="cal", type=ViewType.CALENDAR))
        assert [e.record_id for e in result.entries] == ["r1", "r2", "r4"]
        assert result.groups is not None

    def test_timeline_entries(self, records, properties):
        result = materialize(records, properties, View(id="tl", type=ViewType.TIMELINE))
        assert [e.record_id for e in result.entries] == ["r2", "r1", "r4"]
        assert result.groups is None

    def test_wire_output(self, records, properties, views):
        wire = materialize(records, properties, views[1], default_page_size=2).to_wire()
        assert wire["hasMore"] is True
        assert wire["pageSize"] == 2
        assert wire["groups"][0]["records"][0]["id"] == "r1"
