"""Ad-hoc query parser for filters passed as a query string."""

import contextlib
import json
import urllib.parse
from typing import Any

from dbview.core.modules.filter.models import LIST_VALUE_OPERATORS, VALUELESS_OPERATORS, FilterCondition, FilterOperator
from dbview.core.modules.filter.validators import validate_filter_condition
from dbview.core.modules.property.models import TEXT_TYPES, Schema
from dbview.errors import ValidationError


def _parse_scalar(value_raw: str) -> Any:
    value: Any = urllib.parse.unquote(value_raw)
    if value.lower() == "null":
        return None
    if value.lower() == "true":
        return True
    if value.lower() == "false":
        return False
    with contextlib.suppress(ValueError):
        value = float(value) if "." in value else int(value)
    return value


def _split_conditions(query: str) -> list[str]:
    """Split on commas that are not inside a JSON array or string."""
    parts: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    for char in query:
        if char == '"':
            in_string = not in_string
        elif not in_string and char == "[":
            depth += 1
        elif not in_string and char == "]":
            depth = max(depth - 1, 0)
        elif char == "," and depth == 0 and not in_string:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


def parse_filter_query(query: str, schema: Schema) -> list[FilterCondition]:
    """Parse ad-hoc query string into filter conditions.

    Query format: property:operator:value,property:operator:value
    - Conditions are separated by commas
    - Each condition has format: property:operator:value (value may be empty for is_empty & co.)
    - For list operators (is_any_of, is_none_of, contains_all), value is a JSON array: tags:contains_all:["a","b"]
    - Simple values should be URL-encoded if they contain special characters

    Args:
        query: Query string to parse
        schema: The schema to validate properties against

    Returns:
        List of validated FilterCondition objects

    Raises:
        ValidationError: If query syntax is invalid or validation fails

    Examples:
        status:is:done
        status:is:done,priority:greater_than:5
        tags:contains_all:["shopping","groceries"]
        due:is_empty:
    """
    if not query or not query.strip():
        return []

    conditions: list[FilterCondition] = []

    for cond_str in _split_conditions(query):
        condition_str = cond_str.strip()
        if not condition_str:
            continue

        # Split by ':' with maxsplit=2 to handle values containing ':'
        parts = condition_str.split(":", 2)
        if len(parts) == 2:
            parts.append("")
        if len(parts) != 3:
            raise ValidationError(
                f"Invalid query syntax at condition: '{condition_str}'. Expected format: property:operator:value"
            )

        property_id, operator_str, value_raw = parts

        try:
            operator = FilterOperator(operator_str)
        except ValueError as e:
            raise ValidationError(f"Unknown operator '{operator_str}'") from e

        value: Any
        if operator in VALUELESS_OPERATORS:
            value = None
        elif operator in LIST_VALUE_OPERATORS:
            # List operators - expect JSON array
            try:
                value = json.loads(urllib.parse.unquote(value_raw))
            except json.JSONDecodeError as e:
                raise ValidationError(f"Invalid JSON array for operator '{operator}': {value_raw}") from e
            if not isinstance(value, list):
                raise ValidationError(f"Operator '{operator}' expects a JSON array value, got: {type(value).__name__}")
        elif (prop := schema.get(property_id)) is not None and prop.type in TEXT_TYPES:
            # Text keeps the literal, "007" must not become 7
            value = urllib.parse.unquote(value_raw)
        else:
            value = _parse_scalar(value_raw)

        condition = FilterCondition(property=property_id, condition=operator, value=value)
        conditions.append(validate_filter_condition(condition, schema))

    return conditions
