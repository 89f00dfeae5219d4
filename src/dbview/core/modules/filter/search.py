from dbview.core.modules.property.models import DATE_TYPES, SELECT_TYPES, Property, PropertyType, Schema
from dbview.core.modules.property.normalizers import normalize, to_text
from dbview.core.modules.record.models import Record


def _searchable_texts(record: Record, prop: Property) -> list[str]:
    """Text fragments of a record value that free-text search looks at."""
    if prop.type in DATE_TYPES or prop.type == PropertyType.CHECKBOX:
        return []
    value = normalize(prop, record.raw_value(prop))
    if prop.type in SELECT_TYPES and isinstance(value, str):
        option = prop.config.get_option(value)
        return [value, option.label] if option else [value]
    if prop.type == PropertyType.MULTI_SELECT and isinstance(value, list):
        texts = []
        for item in value:
            option = prop.config.get_option(item)
            texts.extend([item, option.label] if option else [item])
        return texts
    text = to_text(value)
    return [text] if text else []


def matches_search(record: Record, query: str | None, properties: list[Property] | Schema) -> bool:
    """Case-insensitive free-text match over the record's property values.

    Option values match by id and by label. An empty query matches everything.
    """
    if not query or not query.strip():
        return True
    needle = query.strip().casefold()
    for prop in properties:
        for text in _searchable_texts(record, prop):
            if needle in text.casefold():
                return True
    return False
