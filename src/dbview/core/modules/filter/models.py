"""Filter system for narrowing down records."""

from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from dbview.core.models import CamelModel
from dbview.core.modules.property.models import (
    DATE_TYPES,
    NUMBER_TYPES,
    SELECT_TYPES,
    TEXT_TYPES,
    PropertyType,
)


class FilterOperator(StrEnum):
    """Filter conditions a record value can be tested against."""

    # Comparison
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"

    # Text / list membership
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    CONTAINS_ALL = "contains_all"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"

    # Emptiness
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"

    # Numeric
    GREATER_THAN = "greater_than"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN = "less_than"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"

    # Date
    BEFORE = "before"
    AFTER = "after"
    ON_OR_BEFORE = "on_or_before"
    ON_OR_AFTER = "on_or_after"
    IS_TODAY = "is_today"
    IS_YESTERDAY = "is_yesterday"
    IS_TOMORROW = "is_tomorrow"
    IS_THIS_WEEK = "is_this_week"
    IS_LAST_WEEK = "is_last_week"
    IS_NEXT_WEEK = "is_next_week"
    IS_THIS_MONTH = "is_this_month"
    IS_LAST_MONTH = "is_last_month"
    IS_NEXT_MONTH = "is_next_month"

    # Select
    IS = "is"
    IS_NOT = "is_not"
    IS_ANY_OF = "is_any_of"
    IS_NONE_OF = "is_none_of"

    # Checkbox
    IS_CHECKED = "is_checked"
    IS_UNCHECKED = "is_unchecked"


class Combinator(StrEnum):
    """Per-condition combinator. Stored for compatibility; evaluation always ANDs conditions."""

    AND = "and"
    OR = "or"


class FilterCondition(CamelModel):
    """Single filter condition of a view."""

    property: str = Field(..., description="Id of the property to filter on")
    # Unknown operator strings are kept so that a stale condition fails open instead of failing validation
    condition: FilterOperator | str = Field(..., description="Filter operator")
    value: Any = Field(None, description="Value to compare against")
    combinator: Combinator = Field(Combinator.AND, description="Stored only; conditions are always combined with AND")

    @field_validator("condition", mode="before")
    @classmethod
    def _known_operator(cls, value: Any) -> Any:
        if isinstance(value, str) and value in FilterOperator.__members__.values():
            return FilterOperator(value)
        return value


# Operators that do not look at the filter value
VALUELESS_OPERATORS: frozenset[FilterOperator] = frozenset(
    {
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
        FilterOperator.IS_CHECKED,
        FilterOperator.IS_UNCHECKED,
        FilterOperator.IS_TODAY,
        FilterOperator.IS_YESTERDAY,
        FilterOperator.IS_TOMORROW,
        FilterOperator.IS_THIS_WEEK,
        FilterOperator.IS_LAST_WEEK,
        FilterOperator.IS_NEXT_WEEK,
        FilterOperator.IS_THIS_MONTH,
        FilterOperator.IS_LAST_MONTH,
        FilterOperator.IS_NEXT_MONTH,
    }
)

# Operators whose value is a list
LIST_VALUE_OPERATORS: frozenset[FilterOperator] = frozenset(
    {FilterOperator.IS_ANY_OF, FilterOperator.IS_NONE_OF, FilterOperator.CONTAINS_ALL}
)

TEXT_OPERATORS = frozenset(
    {
        FilterOperator.CONTAINS,
        FilterOperator.NOT_CONTAINS,
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.STARTS_WITH,
        FilterOperator.ENDS_WITH,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    }
)

NUMBER_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.GREATER_THAN,
        FilterOperator.LESS_THAN,
        FilterOperator.GREATER_THAN_OR_EQUAL,
        FilterOperator.LESS_THAN_OR_EQUAL,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    }
)

DATE_OPERATORS = frozenset(
    {
        FilterOperator.EQUALS,
        FilterOperator.NOT_EQUALS,
        FilterOperator.BEFORE,
        FilterOperator.AFTER,
        FilterOperator.ON_OR_BEFORE,
        FilterOperator.ON_OR_AFTER,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
        FilterOperator.IS_TODAY,
        FilterOperator.IS_YESTERDAY,
        FilterOperator.IS_TOMORROW,
        FilterOperator.IS_THIS_WEEK,
        FilterOperator.IS_LAST_WEEK,
        FilterOperator.IS_NEXT_WEEK,
        FilterOperator.IS_THIS_MONTH,
        FilterOperator.IS_LAST_MONTH,
        FilterOperator.IS_NEXT_MONTH,
    }
)

SELECT_OPERATORS = frozenset(
    {
        FilterOperator.IS,
        FilterOperator.IS_NOT,
        FilterOperator.IS_ANY_OF,
        FilterOperator.IS_NONE_OF,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    }
)

MULTI_SELECT_OPERATORS = frozenset(
    {
        FilterOperator.CONTAINS,
        FilterOperator.NOT_CONTAINS,
        FilterOperator.CONTAINS_ALL,
        FilterOperator.IS_EMPTY,
        FilterOperator.IS_NOT_EMPTY,
    }
)

CHECKBOX_OPERATORS = frozenset({FilterOperator.IS_CHECKED, FilterOperator.IS_UNCHECKED})


# Mapping of property types to their valid filter operators.
# Types missing here (relation, formula, rollup...) have no filter operators.
PROPERTY_TYPE_OPERATORS: dict[PropertyType, frozenset[FilterOperator]] = {
    **dict.fromkeys(TEXT_TYPES, TEXT_OPERATORS),
    **dict.fromkeys(NUMBER_TYPES, NUMBER_OPERATORS),
    **dict.fromkeys(DATE_TYPES, DATE_OPERATORS),
    **dict.fromkeys(SELECT_TYPES, SELECT_OPERATORS),
    PropertyType.MULTI_SELECT: MULTI_SELECT_OPERATORS,
    PropertyType.CHECKBOX: CHECKBOX_OPERATORS,
}


def get_operators_for_property_type(property_type: PropertyType) -> list[FilterOperator]:
    """Get the list of valid operators for a given property type.

    Args:
        property_type: The property type to get operators for

    Returns:
        List of valid operators for the property type, sorted alphabetically
    """
    operators = PROPERTY_TYPE_OPERATORS.get(property_type, frozenset())
    return sorted(operators, key=lambda x: x.value)


def get_operator_table() -> dict[PropertyType, list[FilterOperator]]:
    """Operators for every property type, for filter-building UIs."""
    return {property_type: get_operators_for_property_type(property_type) for property_type in PropertyType}
