"""Filter validation utilities used when filters are written, not when they are evaluated."""

from typing import Any

from dbview.core.modules.filter.models import (
    LIST_VALUE_OPERATORS,
    PROPERTY_TYPE_OPERATORS,
    VALUELESS_OPERATORS,
    FilterCondition,
    FilterOperator,
)
from dbview.core.modules.property.models import (
    DATE_TYPES,
    NUMBER_TYPES,
    SELECT_TYPES,
    TEXT_TYPES,
    Property,
    PropertyType,
    Schema,
)
from dbview.core.modules.property.normalizers import option_id, to_epoch, to_number
from dbview.errors import ValidationError


def validate_text_value(prop: Property, value: Any) -> str:
    """Validate text filter value."""
    if not isinstance(value, str):
        raise ValidationError(f"Filter value for text property '{prop.id}' must be a string, got {type(value).__name__}")
    return value


def validate_number_value(prop: Property, value: Any) -> int | float:
    """Validate and normalize number filter value."""
    number = to_number(value)
    if number is None:
        raise ValidationError(f"Filter value for number property '{prop.id}' must be a number, got: {value!r}")
    return number


def validate_date_value(prop: Property, value: Any) -> Any:
    """Validate date filter value. The original value is kept; it only has to be parseable."""
    if to_epoch(value) is None:
        raise ValidationError(f"Invalid date for filter on property '{prop.id}': {value!r}")
    return value


def validate_option_value(prop: Property, value: Any) -> str:
    """Validate and normalize a single option reference to its id."""
    option = option_id(value)
    if option is None:
        raise ValidationError(f"Filter value for property '{prop.id}' must be an option id")
    if prop.config.options and prop.config.get_option(option) is None:
        allowed = ", ".join(o.id for o in prop.config.options)
        raise ValidationError(f"Invalid option for property '{prop.id}': '{option}'. Allowed values: {allowed}")
    return option


def validate_filter_value(prop: Property, operator: FilterOperator, value: Any) -> Any:
    """Validate and normalize a filter value for the property type and operator.

    Args:
        prop: The property definition
        operator: The filter operator
        value: The value to validate

    Returns:
        Normalized value ready to be stored in a FilterCondition

    Raises:
        ValidationError: If the value is invalid for the property type or operator
    """
    if operator in VALUELESS_OPERATORS:
        return None
    if value is None:
        raise ValidationError(f"Operator '{operator}' requires a value")

    if operator in LIST_VALUE_OPERATORS or (prop.type == PropertyType.MULTI_SELECT and isinstance(value, list)):
        if not isinstance(value, list) or not value:
            raise ValidationError(f"Filter value for operator '{operator}' on property '{prop.id}' must be a non-empty list")
        return [validate_option_value(prop, item) for item in value]

    if prop.type in SELECT_TYPES or prop.type == PropertyType.MULTI_SELECT:
        return validate_option_value(prop, value)
    if prop.type in TEXT_TYPES:
        return validate_text_value(prop, value)
    if prop.type in NUMBER_TYPES:
        return validate_number_value(prop, value)
    if prop.type in DATE_TYPES:
        return validate_date_value(prop, value)
    return value


def validate_filter_condition(condition: FilterCondition, schema: Schema) -> FilterCondition:
    """Validate a condition against the current schema.

    Raises:
        ValidationError: If the property does not exist, the operator is not valid for
            its type, or the value does not fit
    """
    prop = schema.get(condition.property)
    if prop is None:
        raise ValidationError(f"Property '{condition.property}' referenced in filter condition does not exist")

    valid_operators = PROPERTY_TYPE_OPERATORS.get(prop.type)
    if not valid_operators:
        raise ValidationError(f"Property '{prop.id}' of type '{prop.type}' cannot be filtered")
    if condition.condition not in valid_operators:
        raise ValidationError(f"Operator '{condition.condition}' is not valid for property '{prop.id}' of type '{prop.type}'")

    operator = FilterOperator(condition.condition)
    value = validate_filter_value(prop, operator, condition.value)
    return condition.model_copy(update={"condition": operator, "value": value})
