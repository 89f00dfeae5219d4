"""Materialization of a view: the rows, columns and groups to render for a record snapshot."""

from datetime import datetime
from typing import Any

import structlog
from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.filter.evaluator import filter_records
from dbview.core.modules.filter.search import matches_search
from dbview.core.modules.grouping.calendar import build_calendar_entries, build_timeline_entries
from dbview.core.modules.grouping.engine import group_records, select_grouping_property
from dbview.core.modules.grouping.models import CalendarEntry, Group
from dbview.core.modules.property.models import Property, Schema
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.engine import sort_records
from dbview.core.modules.view.models import View, ViewQueryState, ViewType
from dbview.core.modules.visibility.resolver import VisibilityMode, resolve_visibility
from dbview.core.pagination import loaded_window

logger = structlog.get_logger(__name__)


class Row(CamelModel):
    id: str
    record: Record
    cells: dict[str, Any] = Field(default_factory=dict, description="Raw values keyed by visible column id")


class MaterializedView(CamelModel):
    """Everything a view renders for one snapshot."""

    rows: list[Row] = Field(..., description="Loaded rows, in sort order")
    columns: list[Property] = Field(..., description="Visible columns, in column order")
    groups: list[Group] | None = Field(None, description="Buckets over every matching record, for grouped view types")
    entries: list[CalendarEntry] | None = Field(None, description="Time axis entries for calendar and timeline views")
    total: int = Field(..., description="Number of matching records", ge=0)
    page: int = Field(..., description="Number of pages loaded", ge=1)
    page_size: int = Field(..., ge=1)
    has_more: bool


def materialize(
    records: list[Record],
    properties: list[Property],
    view: View,
    state: ViewQueryState | None = None,
    default_page_size: int = 50,
    current_time: datetime | None = None,
) -> MaterializedView:
    """Run filter, sort, group, column and pagination stages, in that order.

    Filters and sorts come from the query state when one is given, else from the view. Groups
    and entries cover every matching record; rows cover the loaded pages only, so loading one
    more page appends to the previous rows without reshuffling them.

    Args:
        records: Record snapshot, keyed by property id
        properties: Current schema
        view: View being rendered
        state: Local query state overriding the saved view
        default_page_size: Page size when the view does not set one
        current_time: Clock for relative date filters

    Returns:
        Materialized view
    """
    schema = Schema(properties)
    filters = state.filters if state is not None else view.filters
    sorts = state.sorts if state is not None else view.sorts

    active = [record for record in records if not record.is_archived]
    if state is not None and state.search.strip():
        active = [record for record in active if matches_search(record, state.search, schema)]

    matching = filter_records(active, filters, schema, current_time)
    ordered = sort_records(matching, sorts, schema)

    groups = None
    if view.type.is_grouped:
        grouping_property = select_grouping_property(properties, view.settings)
        groups = group_records(ordered, grouping_property, schema, view.settings.show_ungrouped)

    entries = None
    if view.type == ViewType.CALENDAR:
        entries = build_calendar_entries(ordered, properties)
    elif view.type == ViewType.TIMELINE:
        entries = build_timeline_entries(ordered, properties)

    settings = view.settings
    if state is not None and state.visible_properties:
        settings = settings.model_copy(update={"visible_properties": state.visible_properties})
    columns = resolve_visibility(properties, settings, VisibilityMode.EXPLICIT_LIST).visible

    page = state.page if state is not None else 1
    page_size = view.settings.page_size or default_page_size
    loaded = ordered[: loaded_window(len(ordered), page, page_size)]
    rows = [
        Row(id=record.id, record=record, cells={prop.id: record.raw_value(prop) for prop in columns})
        for record in loaded
    ]

    logger.debug(
        "view_materialized",
        view_id=view.id,
        view_type=view.type,
        total=len(ordered),
        rows=len(rows),
        columns=len(columns),
    )
    return MaterializedView(
        rows=rows,
        columns=columns,
        groups=groups,
        entries=entries,
        total=len(ordered),
        page=page,
        page_size=page_size,
        has_more=len(rows) < len(ordered),
    )
