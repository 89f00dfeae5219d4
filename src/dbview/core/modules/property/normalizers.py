"""Value normalizers: one strategy per property type family.

Stored values arrive in whatever shape the producer used (bare option ids, embedded option
objects, ISO strings, epoch numbers...). Normalizers map them onto one canonical shape per
type so that filtering, sorting and grouping compare like with like. Every normalizer is
total: malformed input degrades to None (or [] / False), it never raises.
"""

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from datetime import date, datetime

from dbview.core.modules.property.models import (
    DATE_TYPES,
    NUMBER_TYPES,
    SELECT_TYPES,
    TEXT_TYPES,
    NormalizedValue,
    Property,
    PropertyType,
    PropertyValue,
)
from dbview.utils import parse_datetime, to_epoch_ms

# Keys that may carry an option id in embedded option objects
_OPTION_ID_KEYS = ("id", "value", "_id")
# Keys used as display text for structured values
_DISPLAY_KEYS = ("label", "name", "displayValue", "value")


def _is_number(value: object) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def option_id(value: PropertyValue) -> str | None:
    """Extract an option id from a bare id or an embedded option object."""
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        for key in _OPTION_ID_KEYS:
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate:
                return candidate
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if _is_number(value):
        return str(value)
    return None


def to_number(value: PropertyValue) -> int | float | None:
    """Coerce numbers and numeric strings, None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def to_epoch(value: PropertyValue) -> int | None:
    """Parse a date-like value to UTC epoch milliseconds."""
    try:
        if isinstance(value, bool) or value is None:
            return None
        if _is_number(value):
            return int(value) if math.isfinite(value) else None
        if isinstance(value, datetime | date):
            return to_epoch_ms(value)
        if isinstance(value, str):
            parsed = parse_datetime(value)
            return to_epoch_ms(parsed) if parsed is not None else None
        if isinstance(value, Mapping):
            # Date range: the start decides
            return to_epoch(value.get("start"))
    except (OverflowError, OSError, ValueError):
        return None
    return None


def to_text(value: PropertyValue) -> str | None:
    """Render a value as text, None when empty."""
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, Mapping):
        for key in _DISPLAY_KEYS:
            candidate = value.get(key)
            if candidate is not None and not isinstance(candidate, Mapping | list | tuple):
                return to_text(candidate)
        return None
    if isinstance(value, list | tuple):
        parts = [text for text in (to_text(item) for item in value) if text is not None]
        return ",".join(parts) or None
    if _is_number(value) and isinstance(value, float) and not math.isfinite(value):
        return None
    return str(value)


class ValueNormalizer(ABC):
    """Abstract base class for value normalizers."""

    @abstractmethod
    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        """Normalize a stored value into the canonical shape of the property type.

        Args:
            prop: The property definition
            raw_value: The value as stored in the record

        Returns:
            Canonical value; never raises
        """


class TextNormalizer(ValueNormalizer):
    """Default normalizer: text and anything without a dedicated strategy."""

    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        return to_text(raw_value)


class NumberNormalizer(ValueNormalizer):
    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        return to_number(raw_value)


class DateNormalizer(ValueNormalizer):
    """Dates normalize to UTC epoch milliseconds."""

    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        return to_epoch(raw_value)


class CheckboxNormalizer(ValueNormalizer):
    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        if raw_value is True:
            return True
        if isinstance(raw_value, str):
            return raw_value.strip().lower() == "true"
        return False


class SelectNormalizer(ValueNormalizer):
    """Single-option values normalize to the option id."""

    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        return option_id(raw_value)


class MultiSelectNormalizer(ValueNormalizer):
    """Multi-option values normalize to a list of option ids."""

    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        if not isinstance(raw_value, list | tuple):
            return []
        ids = (option_id(item) for item in raw_value)
        return [item for item in ids if item is not None]


class RelationNormalizer(ValueNormalizer):
    """Relation values normalize to the list of related record ids."""

    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        if raw_value is None:
            return []
        items = raw_value if isinstance(raw_value, list | tuple) else [raw_value]
        ids: list[str] = []
        for item in items:
            if isinstance(item, str) and item:
                ids.append(item)
            elif isinstance(item, Mapping):
                record_id = item.get("recordId") or item.get("id")
                if isinstance(record_id, str) and record_id:
                    ids.append(record_id)
        return ids


class RollupNormalizer(ValueNormalizer):
    """Rollups unwrap their computed value: numbers stay numbers, the rest becomes text."""

    def normalize(self, prop: Property, raw_value: PropertyValue) -> NormalizedValue:
        value = raw_value.get("value") if isinstance(raw_value, Mapping) else raw_value
        if _is_number(value):
            return to_number(value)
        return to_text(value)


_TEXT = TextNormalizer()
_NUMBER = NumberNormalizer()
_DATE = DateNormalizer()
_SELECT = SelectNormalizer()

# Normalizer registry - singleton instances
_NORMALIZERS: dict[PropertyType, ValueNormalizer] = {
    **dict.fromkeys(TEXT_TYPES, _TEXT),
    **dict.fromkeys(NUMBER_TYPES, _NUMBER),
    **dict.fromkeys(DATE_TYPES, _DATE),
    **dict.fromkeys(SELECT_TYPES, _SELECT),
    PropertyType.CHECKBOX: CheckboxNormalizer(),
    PropertyType.MULTI_SELECT: MultiSelectNormalizer(),
    PropertyType.RELATION: RelationNormalizer(),
    PropertyType.ROLLUP: RollupNormalizer(),
}


def get_normalizer(property_type: PropertyType) -> ValueNormalizer:
    """Get the normalizer for a property type, falling back to the text normalizer."""
    return _NORMALIZERS.get(property_type, _TEXT)


def normalize(prop: Property, raw_value: PropertyValue) -> NormalizedValue:
    """Normalize a stored value for a property. Pure, total and idempotent."""
    return get_normalizer(prop.type).normalize(prop, raw_value)
