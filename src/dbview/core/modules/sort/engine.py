"""Pure functions for ordering records by view sort keys."""

from functools import cmp_to_key
from typing import Any

import structlog

from dbview.core.modules.property.models import (
    DATE_TYPES,
    NUMBER_TYPES,
    SELECT_TYPES,
    Property,
    PropertyType,
    Schema,
)
from dbview.core.modules.property.normalizers import normalize, to_text
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig, SortDirection

logger = structlog.get_logger(__name__)


def sort_key(prop: Property, record: Record) -> Any:
    """Comparable key of a record for a property, None when the value is missing.

    Keys of one property always share a type: numbers for number and date types, bool for
    checkbox, option positions for select-like types and casefolded text otherwise.
    """
    value = normalize(prop, record.raw_value(prop))

    if prop.type in NUMBER_TYPES or prop.type in DATE_TYPES:
        return value
    if prop.type == PropertyType.CHECKBOX:
        return bool(value)
    if prop.type in SELECT_TYPES:
        # Options sort in their configured order; ids that are not options count as missing
        return prop.config.option_position(value) if isinstance(value, str) else None
    if prop.type == PropertyType.MULTI_SELECT:
        if not value:
            return None
        positions = (prop.config.option_position(item) for item in value)
        return tuple(p for p in positions if p is not None) or None
    text = to_text(value)
    return text.casefold() if text is not None else None


def _compare_keys(left: Any, right: Any, direction: SortDirection) -> int:
    # Missing values go last in both directions
    if left is None and right is None:
        return 0
    if left is None:
        return 1
    if right is None:
        return -1
    if left == right:
        return 0
    result = -1 if left < right else 1
    return -result if direction == SortDirection.DESC else result


def resolve_sorts(sorts: list[SortConfig], schema: Schema) -> list[tuple[Property, SortDirection]]:
    """Pair each sort entry with its property, skipping entries whose property is gone."""
    resolved = []
    for sort in sorts:
        prop = schema.get(sort.property_id)
        if prop is None:
            logger.warning("sort_property_missing", property_id=sort.property_id)
            continue
        resolved.append((prop, sort.direction))
    return resolved


def sort_records(records: list[Record], sorts: list[SortConfig], properties: list[Property] | Schema) -> list[Record]:
    """Sort records by the view's sort keys.

    The first key whose values differ decides; records that tie on every key keep their input
    order (the sort is stable). Missing values sort last regardless of direction.

    Args:
        records: Records to sort
        sorts: Sort keys in precedence order
        properties: Current schema

    Returns:
        New list of records in sorted order
    """
    schema = properties if isinstance(properties, Schema) else Schema(properties)
    keys = resolve_sorts(sorts, schema)
    if not keys:
        return list(records)

    # Precompute keys once per record: (keys, record)
    decorated = [([sort_key(prop, record) for prop, _ in keys], record) for record in records]
    directions = [direction for _, direction in keys]

    def compare(left: tuple[list[Any], Record], right: tuple[list[Any], Record]) -> int:
        for left_key, right_key, direction in zip(left[0], right[0], directions, strict=True):
            result = _compare_keys(left_key, right_key, direction)
            if result:
                return result
        return 0

    decorated.sort(key=cmp_to_key(compare))
    return [record for _, record in decorated]
