"""Calendar and timeline placement of records."""

from dbview.core.modules.grouping.engine import select_grouping_property
from dbview.core.modules.grouping.models import UNGROUPED_ID, UNGROUPED_NAME, UNTITLED, CalendarEntry, EntryGroup
from dbview.core.modules.property.models import Property, PropertyType
from dbview.core.modules.property.normalizers import normalize, to_text
from dbview.core.modules.record.models import Record
from dbview.utils import to_epoch_ms, utc_day


def select_title_property(properties: list[Property]) -> Property | None:
    """First text property, else one named like a title, else one named like a name, else the first."""
    for matches in (
        lambda p: p.type == PropertyType.TEXT,
        lambda p: "title" in p.name.lower(),
        lambda p: "name" in p.name.lower(),
    ):
        for prop in properties:
            if matches(prop):
                return prop
    return properties[0] if properties else None


def _title(record: Record, title_property: Property | None) -> str:
    if title_property is None:
        return UNTITLED
    return to_text(normalize(title_property, record.raw_value(title_property))) or UNTITLED


def _day_start(epoch: object) -> int | None:
    """Midnight (UTC) of the day an epoch instant falls on."""
    if not isinstance(epoch, int) or isinstance(epoch, bool):
        return None
    try:
        return to_epoch_ms(utc_day(epoch))
    except (OverflowError, OSError, ValueError):
        return None


def build_calendar_entries(records: list[Record], properties: list[Property]) -> list[CalendarEntry]:
    """One single-day entry per record and date property holding a value, in record order."""
    date_properties = [prop for prop in properties if prop.type == PropertyType.DATE]
    title_property = select_title_property(properties)

    entries = []
    for record in records:
        for prop in date_properties:
            day = _day_start(normalize(prop, record.raw_value(prop)))
            if day is None:
                continue
            entries.append(
                CalendarEntry(
                    id=f"{record.id}-{prop.id}",
                    record_id=record.id,
                    property_id=prop.id,
                    property_name=prop.name,
                    name=_title(record, title_property),
                    start=day,
                    end=day,
                )
            )
    return entries


def build_timeline_entries(records: list[Record], properties: list[Property]) -> list[CalendarEntry]:
    """Calendar entries laned by the grouping property and ordered by start (stable)."""
    grouping_property = select_grouping_property(properties)

    entries = []
    for entry, record in _with_records(build_calendar_entries(records, properties), records):
        lane = EntryGroup(id=UNGROUPED_ID, name=UNGROUPED_NAME)
        if grouping_property is not None:
            value = normalize(grouping_property, record.raw_value(grouping_property))
            option = grouping_property.config.get_option(value) if isinstance(value, str) else None
            if option is not None:
                lane = EntryGroup(id=option.id, name=option.label or option.id)
        entries.append(entry.model_copy(update={"group": lane}))
    return sorted(entries, key=lambda e: e.start)


def _with_records(entries: list[CalendarEntry], records: list[Record]) -> list[tuple[CalendarEntry, Record]]:
    by_id = {record.id: record for record in records}
    return [(entry, by_id[entry.record_id]) for entry in entries]
