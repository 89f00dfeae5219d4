"""Bucketing of records by a select or status property for board, list, gallery and calendar views."""

import structlog

from dbview.core.modules.grouping.models import UNGROUPED_ID, UNGROUPED_NAME, Group
from dbview.core.modules.property.models import (
    GROUPABLE_TYPES,
    NEUTRAL_COLOR,
    Property,
    PropertyType,
    Schema,
)
from dbview.core.modules.property.normalizers import normalize
from dbview.core.modules.record.models import Record
from dbview.core.modules.view.models import ViewSettings
from dbview.errors import ValidationError

logger = structlog.get_logger(__name__)


def select_grouping_property(properties: list[Property], settings: ViewSettings | None = None) -> Property | None:
    """Pick the property records are grouped by.

    An explicit group-by setting wins when it names an existing select or status property;
    otherwise the first select property, then the first status property, else None.
    """
    if settings is not None and settings.group_by is not None:
        for prop in properties:
            if prop.id == settings.group_by.property_id and prop.type in GROUPABLE_TYPES:
                return prop
        logger.warning("group_by_property_unusable", property_id=settings.group_by.property_id)

    for property_type in (PropertyType.SELECT, PropertyType.STATUS):
        for prop in properties:
            if prop.type == property_type:
                return prop
    return None


def _ungrouped_bucket(hidden: bool = False) -> Group:
    return Group(id=UNGROUPED_ID, name=UNGROUPED_NAME, color=NEUTRAL_COLOR, hidden=hidden)


def build_buckets(grouping_property: Property | None, show_ungrouped: bool = True) -> list[Group]:
    """Empty buckets in display order: one per option, then 'ungrouped' unless switched off."""
    buckets = []
    if grouping_property is not None:
        buckets = [
            Group(id=option.id, name=option.label or option.id, color=option.color or NEUTRAL_COLOR)
            for option in grouping_property.config.options
        ]
    if show_ungrouped or grouping_property is None:
        buckets.append(_ungrouped_bucket())
    return buckets


def group_records(
    records: list[Record],
    grouping_property: Property | None,
    properties: list[Property] | Schema | None = None,
    show_ungrouped: bool = True,
) -> list[Group]:
    """Assign every record to exactly one bucket, keeping the input order inside each bucket.

    Records whose value is not a known option land in 'ungrouped'. When show_ungrouped is
    false that bucket is still returned, flagged hidden, if it holds records.

    Args:
        records: Filtered and sorted records
        grouping_property: Property to group by, None for a single ungrouped bucket
        properties: Current schema; a grouping property missing from it groups nothing
        show_ungrouped: Whether the ungrouped bucket is displayed

    Returns:
        Buckets in display order
    """
    if grouping_property is not None and properties is not None:
        schema = properties if isinstance(properties, Schema) else Schema(properties)
        if schema.get(grouping_property.id) is None:
            logger.warning("grouping_property_missing", property_id=grouping_property.id)
            grouping_property = None

    buckets = build_buckets(grouping_property, show_ungrouped)
    by_id: dict[str, Group] = {}
    for bucket in buckets:
        if bucket.id in by_id:
            # The earlier bucket is still displayed but never receives records
            logger.warning(
                "group_id_collision",
                property_id=grouping_property.id if grouping_property is not None else None,
                group_id=bucket.id,
            )
        by_id[bucket.id] = bucket
    ungrouped = by_id.get(UNGROUPED_ID)
    if ungrouped is None:
        ungrouped = _ungrouped_bucket(hidden=True)

    for record in records:
        bucket = None
        if grouping_property is not None:
            value = normalize(grouping_property, record.raw_value(grouping_property))
            if isinstance(value, str) and value != UNGROUPED_ID:
                bucket = by_id.get(value)
        (bucket or ungrouped).records.append(record)

    if ungrouped.hidden and ungrouped.records:
        buckets.append(ungrouped)
    return buckets


def group_value(grouping_property: Property, target_group_id: str) -> str | None:
    """Value stored for a record placed in a bucket.

    Raises:
        ValidationError: If the target is not a bucket of the grouping property
    """
    if target_group_id == UNGROUPED_ID:
        return None
    if grouping_property.config.get_option(target_group_id) is None:
        raise ValidationError(f"Group '{target_group_id}' does not exist for property '{grouping_property.name}'")
    return target_group_id


def move_record(record: Record, grouping_property: Property, target_group_id: str) -> Record:
    """Record with its grouping value set to the target bucket, None for 'ungrouped'."""
    return record.with_value(grouping_property.id, group_value(grouping_property, target_group_id))
