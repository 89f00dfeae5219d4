from enum import StrEnum

from pydantic import Field

from dbview.core.models import CamelModel


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


class SortConfig(CamelModel):
    """One sort key of a view. Earlier keys take precedence, later keys break ties."""

    property_id: str = Field(..., description="Id of the property to sort by")
    direction: SortDirection = Field(SortDirection.ASC, description="Sort direction")
