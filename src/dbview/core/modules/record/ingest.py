"""Projection of collaborator payloads onto id-keyed records."""

from collections.abc import Mapping
from typing import Any

import structlog

from dbview.core.modules.property.models import Property, Schema
from dbview.core.modules.record.models import Record

logger = structlog.get_logger(__name__)


def project_property_keys(values: Mapping[str, Any], schema: Schema) -> dict[str, Any]:
    """Re-key a property value map by property id.

    Keys that are property ids are kept. Keys that match a property name are moved to that
    property's id unless the id key is also present (the id wins). Keys matching neither are
    dropped: they belong to deleted properties or to names that no longer exist after a rename.

    Args:
        values: Property values keyed by id, name, or a mix of both
        schema: Current schema

    Returns:
        Property values keyed by id only
    """
    names = schema.by_name()
    projected: dict[str, Any] = {}
    renamed: dict[str, Any] = {}
    dropped: list[str] = []

    for key, value in values.items():
        if schema.get(key) is not None:
            projected[key] = value
        elif key in names:
            renamed[names[key].id] = value
        else:
            dropped.append(key)

    for property_id, value in renamed.items():
        projected.setdefault(property_id, value)

    if dropped:
        logger.debug("record_keys_dropped", keys=dropped)
    return projected


def ingest_record(payload: Mapping[str, Any], properties: list[Property]) -> Record:
    """Build a Record from a collaborator payload whose values may be keyed by property name."""
    return ingest_records([payload], properties)[0]


def ingest_records(payloads: list[Mapping[str, Any]], properties: list[Property]) -> list[Record]:
    schema = Schema(properties)
    records = []
    for payload in payloads:
        record = Record.model_validate(payload)
        records.append(record.model_copy(update={"properties": project_property_keys(record.properties, schema)}))
    return records
