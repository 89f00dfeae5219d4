"""Property system for schema-flexible databases."""

from collections.abc import Iterator
from enum import StrEnum
from typing import Any

from pydantic import Field

from dbview.core.models import CamelModel
from dbview.errors import ValidationError

# Type for raw values stored in records (shape depends on the producer)
PropertyValue = Any

# Type for values after normalization
NormalizedValue = str | int | float | bool | list[str] | None

NEUTRAL_COLOR = "#6b7280"


class PropertyType(StrEnum):
    """Available property types for database schemas."""

    TEXT = "text"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    CURRENCY = "currency"
    PERCENT = "percent"
    DATE = "date"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE = "phone"
    SELECT = "select"  # Single option from config.options
    MULTI_SELECT = "multi_select"  # Any number of options from config.options
    STATUS = "status"
    PRIORITY = "priority"
    FILE = "file"
    RELATION = "relation"  # References to records of another database
    ROLLUP = "rollup"
    FORMULA = "formula"
    CREATED_TIME = "created_time"
    LAST_EDITED_TIME = "last_edited_time"
    CREATED_BY = "created_by"
    LAST_EDITED_BY = "last_edited_by"


# Type families sharing normalization, filter operators and sort keys
TEXT_TYPES = frozenset(
    {PropertyType.TEXT, PropertyType.RICH_TEXT, PropertyType.EMAIL, PropertyType.URL, PropertyType.PHONE}
)
NUMBER_TYPES = frozenset({PropertyType.NUMBER, PropertyType.CURRENCY, PropertyType.PERCENT})
DATE_TYPES = frozenset({PropertyType.DATE, PropertyType.CREATED_TIME, PropertyType.LAST_EDITED_TIME})
SELECT_TYPES = frozenset({PropertyType.SELECT, PropertyType.STATUS, PropertyType.PRIORITY})
GROUPABLE_TYPES = frozenset({PropertyType.SELECT, PropertyType.STATUS})


class PropertyOption(CamelModel):
    """Option of a select-like property."""

    id: str = Field(..., description="Option identifier stored in record values")
    label: str = Field("", description="Display label")
    color: str = Field(NEUTRAL_COLOR, description="Display color")


class PropertyConfig(CamelModel):
    """Type-specific property configuration."""

    options: list[PropertyOption] = Field(default_factory=list, description="Ordered options for select-like types")
    include_time: bool = Field(False, description="Whether date values carry a time of day")
    relation_database_id: str | None = Field(None, description="Target database of a relation property")
    formula: str | None = Field(None, description="Formula expression, evaluated by the record store")

    def get_option(self, option_id: str) -> PropertyOption | None:
        """Get option by id."""
        for option in self.options:
            if option.id == option_id:
                return option
        return None

    def option_position(self, option_id: str) -> int | None:
        """Position of an option in config order, None when unknown."""
        for index, option in enumerate(self.options):
            if option.id == option_id:
                return index
        return None


class Property(CamelModel):
    """Property (column) definition in a database schema."""

    id: str = Field(..., description="Property identifier (unique within the schema)")
    name: str = Field(..., description="Display name")
    type: PropertyType = Field(..., description="Property data type")
    config: PropertyConfig = Field(default_factory=PropertyConfig, description="Type-specific configuration")
    is_system: bool = Field(False, description="System properties can never be hidden")
    required: bool = Field(False, description="Required properties can never be hidden")
    is_visible: bool = Field(True, description="Schema-level visibility used when a view has no column list")
    order: int = Field(0, description="Default column position")
    description: str = ""

    @property
    def can_hide(self) -> bool:
        return not (self.is_system or self.required)


class Schema:
    """Ordered, id-indexed collection of properties."""

    def __init__(self, properties: list[Property]) -> None:
        self._by_id: dict[str, Property] = {}
        for prop in properties:
            if prop.id in self._by_id:
                raise ValidationError(f"Duplicate property id '{prop.id}' in schema")
            self._by_id[prop.id] = prop
        self.properties = properties

    def __iter__(self) -> Iterator[Property]:
        return iter(self.properties)

    def __len__(self) -> int:
        return len(self.properties)

    def get(self, property_id: str) -> Property | None:
        """Get property by id."""
        return self._by_id.get(property_id)

    def by_name(self) -> dict[str, Property]:
        """Map of property name to property. Later duplicates lose."""
        result: dict[str, Property] = {}
        for prop in self.properties:
            result.setdefault(prop.name, prop)
        return result

    def ordered(self) -> list[Property]:
        """Properties in default column order (stable on equal order)."""
        return sorted(self.properties, key=lambda p: p.order)
