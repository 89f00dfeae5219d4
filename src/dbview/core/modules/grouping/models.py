from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.property.models import NEUTRAL_COLOR
from dbview.core.modules.record.models import Record

UNGROUPED_ID = "ungrouped"
UNGROUPED_NAME = "Ungrouped"
ENTRY_COLOR = "#3B82F6"
UNTITLED = "Untitled"


class Group(CamelModel):
    """Bucket of records sharing one option of the grouping property."""

    id: str = Field(..., description="Option id, or 'ungrouped'")
    name: str = Field(..., description="Option label")
    color: str = Field(NEUTRAL_COLOR, description="Option color")
    records: list[Record] = Field(default_factory=list)
    hidden: bool = Field(False, description="Ungrouped bucket kept for completeness but not displayed")

    @property
    def count(self) -> int:
        return len(self.records)


class EntryGroup(CamelModel):
    id: str
    name: str


class CalendarEntry(CamelModel):
    """One record placed on a time axis by one of its date properties.

    Entries are single-day: start and end are the same instant.
    """

    id: str = Field(..., description="'<record id>-<property id>'")
    record_id: str
    property_id: str
    property_name: str
    name: str = Field(..., description="Value of the title property")
    start: int = Field(..., description="Epoch milliseconds (UTC)")
    end: int = Field(..., description="Epoch milliseconds (UTC)")
    color: str = ENTRY_COLOR
    group: EntryGroup | None = None  # Timeline lane
