"""Saved views and the query state a view is rendered with."""

from enum import StrEnum

from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.sort.models import SortConfig
from dbview.errors import NotFoundError, ValidationError


class ViewType(StrEnum):
    TABLE = "table"
    BOARD = "board"
    GALLERY = "gallery"
    LIST = "list"
    CALENDAR = "calendar"
    TIMELINE = "timeline"

    @property
    def is_grouped(self) -> bool:
        """Whether records of this view type are bucketed by a grouping property."""
        return self in (ViewType.BOARD, ViewType.LIST, ViewType.GALLERY, ViewType.CALENDAR)

    @property
    def has_entries(self) -> bool:
        """Whether this view type places records on a time axis."""
        return self in (ViewType.CALENDAR, ViewType.TIMELINE)


class GroupBy(CamelModel):
    property_id: str = Field(..., description="Id of the property to group by")


class ViewSettings(CamelModel):
    """Per-view display settings."""

    visible_properties: list[str] = Field(default_factory=list, description="Ids of columns shown in this view")
    hidden_properties: list[str] = Field(default_factory=list, description="Ids of columns hidden in this view")
    show_ungrouped: bool = Field(True, description="Whether the 'Ungrouped' bucket is displayed")
    page_size: int | None = Field(None, ge=1, description="Records per page; configured default when unset")
    group_by: GroupBy | None = Field(None, description="Explicit grouping property")


class View(CamelModel):
    """Saved view of a database."""

    id: str
    name: str = ""
    type: ViewType = ViewType.TABLE
    is_default: bool = False
    filters: list[FilterCondition] = Field(default_factory=list)  # Always combined with AND
    sorts: list[SortConfig] = Field(default_factory=list)  # Precedence order
    settings: ViewSettings = Field(default_factory=ViewSettings)


class ViewQueryState(CamelModel):
    """Local, serializable state a view is materialized with.

    Filters and sorts here are the source of truth for rendering while saves are in flight.
    An empty visible_properties list defers to the view settings.
    """

    filters: list[FilterCondition] = Field(default_factory=list)
    sorts: list[SortConfig] = Field(default_factory=list)
    visible_properties: list[str] = Field(default_factory=list)
    search: str = ""
    page: int = Field(1, ge=1, description="Number of pages loaded so far")

    @classmethod
    def from_view(cls, view: View) -> "ViewQueryState":
        return cls(filters=list(view.filters), sorts=list(view.sorts))


def get_view(views: list[View], view_id: str) -> View:
    """Get view by id."""
    for view in views:
        if view.id == view_id:
            return view
    raise NotFoundError(f"View '{view_id}' not found")


def add_view(views: list[View], new_view: View) -> list[View]:
    """Add a view keeping exactly one default view.

    The first view of a database becomes the default; a new default view takes the flag
    from the previous one.
    """
    if any(view.id == new_view.id for view in views):
        raise ValidationError(f"View '{new_view.id}' already exists")
    if not views:
        return [new_view.model_copy(update={"is_default": True})]
    if new_view.is_default:
        return [view.model_copy(update={"is_default": False}) for view in views] + [new_view]
    return [*views, new_view]


def remove_view(views: list[View], view_id: str) -> list[View]:
    """Remove a view. The last view cannot be deleted; removing the default promotes the first remaining one."""
    view = get_view(views, view_id)
    if len(views) == 1:
        raise ValidationError("Cannot delete the last view of a database")
    remaining = [v for v in views if v.id != view_id]
    if view.is_default:
        remaining[0] = remaining[0].model_copy(update={"is_default": True})
    return remaining
