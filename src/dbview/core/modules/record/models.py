from datetime import datetime
from typing import Any

from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.property.models import Property, PropertyType, PropertyValue
from dbview.utils import now


class Record(CamelModel):
    """Database row holding property values keyed by property id."""

    id: str
    properties: dict[str, PropertyValue] = Field(default_factory=dict)  # property id -> stored value
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)
    is_archived: bool = False

    def raw_value(self, prop: Property) -> Any:
        """Stored value for a property.

        Time properties fall back to the record timestamps when nothing is stored.
        """
        value = self.properties.get(prop.id)
        if value is None and prop.type == PropertyType.CREATED_TIME:
            return self.created_at
        if value is None and prop.type == PropertyType.LAST_EDITED_TIME:
            return self.updated_at
        return value

    def with_value(self, property_id: str, value: PropertyValue) -> "Record":
        """Copy of the record with one property value replaced."""
        return self.model_copy(update={"properties": {**self.properties, property_id: value}})
