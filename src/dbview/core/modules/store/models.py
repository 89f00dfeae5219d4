from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig


class RecordQuery(CamelModel):
    """Page request sent to the record store."""

    view_id: str | None = Field(None, description="View whose saved settings apply")
    search: str = Field("", description="Free-text search")
    filters: list[FilterCondition] | None = Field(None, description="Overrides the view filters when set")
    sorts: list[SortConfig] | None = Field(None, description="Overrides the view sorts when set")
    page: int = Field(1, description="1-based page number", ge=1)
    limit: int = Field(50, description="Maximum records per page", ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class RecordPage(CamelModel):
    """One page of records returned by the record store."""

    records: list[Record] = Field(..., description="Records of the requested page")
    total: int = Field(..., description="Total number of matching records", ge=0)
    has_next: bool = Field(..., description="Whether more pages exist")
