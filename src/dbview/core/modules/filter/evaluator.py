"""Pure functions for evaluating view filters against records."""

from datetime import UTC, date, datetime, timedelta
from typing import Any

import structlog

from dbview.core.modules.filter.models import (
    PROPERTY_TYPE_OPERATORS,
    VALUELESS_OPERATORS,
    FilterCondition,
    FilterOperator,
)
from dbview.core.modules.property.models import (
    DATE_TYPES,
    NUMBER_TYPES,
    SELECT_TYPES,
    NormalizedValue,
    Property,
    PropertyType,
    Schema,
)
from dbview.core.modules.property.normalizers import normalize, option_id, to_epoch, to_number, to_text
from dbview.core.modules.record.models import Record
from dbview.utils import month_key, now, shift_month, utc_day, week_start

logger = structlog.get_logger(__name__)


class _Undecidable(Exception):
    """Internal signal: the condition cannot be evaluated and fails open."""


def is_empty_value(value: NormalizedValue) -> bool:
    return value is None or value == "" or value == []


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, list | tuple | set):
        return list(value)
    return [value]


def _require(value: Any) -> Any:
    if value is None:
        raise _Undecidable
    return value


def _text_filter_value(value: Any) -> str:
    return _require(to_text(value)).casefold()


def _evaluate_text(operator: FilterOperator, record_value: NormalizedValue, filter_value: Any) -> bool:
    needle = _text_filter_value(filter_value)
    haystack = record_value.casefold() if isinstance(record_value, str) else None

    if operator == FilterOperator.CONTAINS:
        return haystack is not None and needle in haystack
    if operator == FilterOperator.NOT_CONTAINS:
        return haystack is None or needle not in haystack
    if operator == FilterOperator.EQUALS:
        return haystack == needle
    if operator == FilterOperator.NOT_EQUALS:
        return haystack != needle
    if operator == FilterOperator.STARTS_WITH:
        return haystack is not None and haystack.startswith(needle)
    if operator == FilterOperator.ENDS_WITH:
        return haystack is not None and haystack.endswith(needle)
    raise _Undecidable


def _compare(operator: FilterOperator, left: Any, right: Any) -> bool:
    """Ordered comparison shared by numbers and dates. A missing left side never matches."""
    if operator == FilterOperator.EQUALS:
        return left == right
    if operator == FilterOperator.NOT_EQUALS:
        return left != right
    if left is None:
        return False
    if operator in (FilterOperator.GREATER_THAN, FilterOperator.AFTER):
        return left > right
    if operator in (FilterOperator.GREATER_THAN_OR_EQUAL, FilterOperator.ON_OR_AFTER):
        return left >= right
    if operator in (FilterOperator.LESS_THAN, FilterOperator.BEFORE):
        return left < right
    if operator in (FilterOperator.LESS_THAN_OR_EQUAL, FilterOperator.ON_OR_BEFORE):
        return left <= right
    raise _Undecidable


def _evaluate_number(operator: FilterOperator, record_value: NormalizedValue, filter_value: Any) -> bool:
    return _compare(operator, record_value, _require(to_number(filter_value)))


def _day(epoch: NormalizedValue) -> date | None:
    if not isinstance(epoch, int | float) or isinstance(epoch, bool):
        return None
    try:
        return utc_day(epoch)
    except (OverflowError, OSError, ValueError):
        return None


def _utc_today(current_time: datetime) -> date:
    if current_time.tzinfo is None:
        return current_time.date()
    return current_time.astimezone(UTC).date()


def _relative_date_matches(operator: FilterOperator, day: date, today: date) -> bool:
    if operator == FilterOperator.IS_TODAY:
        return day == today
    if operator == FilterOperator.IS_YESTERDAY:
        return day == today - timedelta(days=1)
    if operator == FilterOperator.IS_TOMORROW:
        return day == today + timedelta(days=1)
    if operator == FilterOperator.IS_THIS_WEEK:
        return week_start(day) == week_start(today)
    if operator == FilterOperator.IS_LAST_WEEK:
        return week_start(day) == week_start(today) - timedelta(weeks=1)
    if operator == FilterOperator.IS_NEXT_WEEK:
        return week_start(day) == week_start(today) + timedelta(weeks=1)
    if operator == FilterOperator.IS_THIS_MONTH:
        return month_key(day) == month_key(today)
    if operator == FilterOperator.IS_LAST_MONTH:
        return month_key(day) == shift_month(today, -1)
    if operator == FilterOperator.IS_NEXT_MONTH:
        return month_key(day) == shift_month(today, 1)
    raise _Undecidable


def _evaluate_date(
    operator: FilterOperator, record_value: NormalizedValue, filter_value: Any, current_time: datetime
) -> bool:
    # All date comparisons are made on UTC calendar days
    record_day = _day(record_value)
    if operator in VALUELESS_OPERATORS:
        return record_day is not None and _relative_date_matches(operator, record_day, _utc_today(current_time))
    filter_day = _require(_day(to_epoch(filter_value)))
    return _compare(operator, record_day, filter_day)


def _evaluate_checkbox(operator: FilterOperator, record_value: NormalizedValue) -> bool:
    if operator == FilterOperator.IS_CHECKED:
        return record_value is True
    if operator == FilterOperator.IS_UNCHECKED:
        return record_value is not True
    raise _Undecidable


def _option_ids(filter_value: Any) -> list[str]:
    ids = [item for item in (option_id(v) for v in _as_list(filter_value)) if item is not None]
    if not ids:
        raise _Undecidable
    return ids


def _evaluate_select(operator: FilterOperator, record_value: NormalizedValue, filter_value: Any) -> bool:
    if operator == FilterOperator.IS:
        return record_value == _require(option_id(filter_value))
    if operator == FilterOperator.IS_NOT:
        return record_value != _require(option_id(filter_value))
    if operator == FilterOperator.IS_ANY_OF:
        return record_value in _option_ids(filter_value)
    if operator == FilterOperator.IS_NONE_OF:
        return record_value not in _option_ids(filter_value)
    raise _Undecidable


def _evaluate_multi_select(operator: FilterOperator, record_value: NormalizedValue, filter_value: Any) -> bool:
    present = set(record_value) if isinstance(record_value, list) else set()
    wanted = _option_ids(filter_value)

    if operator == FilterOperator.CONTAINS:
        return any(item in present for item in wanted)
    if operator == FilterOperator.NOT_CONTAINS:
        return not any(item in present for item in wanted)
    if operator == FilterOperator.CONTAINS_ALL:
        return all(item in present for item in wanted)
    raise _Undecidable


def _evaluate(
    prop: Property, operator: FilterOperator, record_value: NormalizedValue, filter_value: Any, current_time: datetime
) -> bool:
    if operator == FilterOperator.IS_EMPTY:
        return is_empty_value(record_value)
    if operator == FilterOperator.IS_NOT_EMPTY:
        return not is_empty_value(record_value)

    if prop.type in DATE_TYPES:
        return _evaluate_date(operator, record_value, filter_value, current_time)
    if prop.type in NUMBER_TYPES:
        return _evaluate_number(operator, record_value, filter_value)
    if prop.type in SELECT_TYPES:
        return _evaluate_select(operator, record_value, filter_value)
    if prop.type == PropertyType.MULTI_SELECT:
        return _evaluate_multi_select(operator, record_value, filter_value)
    if prop.type == PropertyType.CHECKBOX:
        return _evaluate_checkbox(operator, record_value)
    return _evaluate_text(operator, record_value, filter_value)


def evaluate_condition(
    record: Record, condition: FilterCondition, schema: Schema, current_time: datetime | None = None
) -> bool:
    """Evaluate a single condition against a record.

    Conditions that cannot be evaluated fail open (return True): a property that no longer
    exists, an operator that does not belong to the property type, or a value-taking operator
    whose value is missing or unusable.

    Args:
        record: The record to test
        condition: The filter condition
        schema: Current schema
        current_time: Clock for relative date operators (defaults to now)

    Returns:
        Whether the record satisfies the condition
    """
    prop = schema.get(condition.property)
    if prop is None:
        logger.warning(
            "filter_property_missing",
            property_id=condition.property,
            operator=str(condition.condition),
        )
        return True

    valid_operators = PROPERTY_TYPE_OPERATORS.get(prop.type, frozenset())
    if condition.condition not in valid_operators:
        logger.warning(
            "filter_operator_invalid",
            property_id=prop.id,
            property_type=str(prop.type),
            operator=str(condition.condition),
        )
        return True

    operator = FilterOperator(condition.condition)
    record_value = normalize(prop, record.raw_value(prop))
    try:
        return _evaluate(prop, operator, record_value, condition.value, current_time or now())
    except _Undecidable:
        logger.debug("filter_condition_incomplete", property_id=prop.id, operator=str(operator))
        return True


def matches(
    record: Record,
    conditions: list[FilterCondition],
    properties: list[Property] | Schema,
    current_time: datetime | None = None,
) -> bool:
    """Check whether a record satisfies every condition (conditions are always ANDed)."""
    schema = properties if isinstance(properties, Schema) else Schema(properties)
    clock = current_time or now()
    return all(evaluate_condition(record, condition, schema, clock) for condition in conditions)


def filter_records(
    records: list[Record],
    conditions: list[FilterCondition],
    properties: list[Property] | Schema,
    current_time: datetime | None = None,
) -> list[Record]:
    """Records matching all conditions, in input order."""
    if not conditions:
        return list(records)
    schema = properties if isinstance(properties, Schema) else Schema(properties)
    clock = current_time or now()
    return [record for record in records if matches(record, conditions, schema, clock)]
