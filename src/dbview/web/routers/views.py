from typing import Annotated, Any

from fastapi import APIRouter, Body, Query
from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.filter.models import FilterCondition
from dbview.core.modules.property.models import Property
from dbview.core.modules.record.models import Record
from dbview.core.modules.sort.models import SortConfig
from dbview.core.modules.view.materializer import MaterializedView
from dbview.core.modules.view.models import View, ViewQueryState
from dbview.web.deps import AppDep
from dbview.web.openapi import ErrorResponse

router = APIRouter(tags=["views"])


class MaterializeRequest(CamelModel):
    """Snapshot to materialize without a record store."""

    records: list[dict[str, Any]] = Field(..., description="Records; values may be keyed by property id or name")
    properties: list[Property] = Field(..., description="Current schema")
    view: View = Field(..., description="View to render")
    state: ViewQueryState | None = Field(None, description="Local query state overriding the view")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "records": [{"id": "r1", "properties": {"p1": "o1"}}],
                    "properties": [
                        {
                            "id": "p1",
                            "name": "Status",
                            "type": "select",
                            "config": {"options": [{"id": "o1", "label": "Todo"}, {"id": "o2", "label": "Done"}]},
                        }
                    ],
                    "view": {"id": "v1", "type": "board"},
                }
            ]
        }
    }


class CellUpdateRequest(CamelModel):
    value: Any = Field(None, description="New raw value of the cell")


class MoveRecordRequest(CamelModel):
    group_id: str = Field(..., description="Target group id, or 'ungrouped'")


@router.post(
    "/materialize",
    summary="Materialize a snapshot",
    description="Filter, sort, group, paginate and project a caller-supplied snapshot of records.",
    operation_id="materializeSnapshot",
    responses={
        200: {"description": "Materialized view"},
        400: {"model": ErrorResponse, "description": "Invalid schema"},
    },
)
async def materialize_snapshot(req: MaterializeRequest, app: AppDep) -> MaterializedView:
    return app.materialize_snapshot(req.records, req.properties, req.view, req.state)


@router.get(
    "/databases/{database_id}/views/{view_id}",
    summary="Get view",
    operation_id="getView",
    responses={
        200: {"description": "View"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
    },
)
async def get_view(database_id: str, view_id: str, app: AppDep) -> View:
    return await app.get_view(database_id, view_id)


@router.get(
    "/databases/{database_id}/properties",
    summary="List properties",
    operation_id="listProperties",
    responses={
        200: {"description": "Database schema"},
        404: {"model": ErrorResponse, "description": "Database not found"},
    },
)
async def list_properties(database_id: str, app: AppDep) -> list[Property]:
    return await app.get_properties(database_id)


@router.post(
    "/databases/{database_id}/views/{view_id}/materialize",
    summary="Materialize a saved view",
    description=(
        "Materialize a saved view over every record of its database. "
        "The optional body overrides the saved filters and sorts; q adds ad-hoc conditions "
        "in 'property:operator:value' format, comma separated."
    ),
    operation_id="materializeView",
    responses={
        200: {"description": "Materialized view"},
        400: {"model": ErrorResponse, "description": "Invalid ad-hoc query"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
    },
)
async def materialize_view(
    database_id: str,
    view_id: str,
    app: AppDep,
    state: Annotated[ViewQueryState | None, Body()] = None,
    q: Annotated[str | None, Query(description="Ad-hoc filter query")] = None,
) -> MaterializedView:
    return await app.materialize_view(database_id, view_id, state, q)


@router.put(
    "/databases/{database_id}/views/{view_id}/filters",
    summary="Save view filters",
    operation_id="setViewFilters",
    responses={
        200: {"description": "Updated view"},
        400: {"model": ErrorResponse, "description": "Invalid filter condition"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def set_view_filters(database_id: str, view_id: str, filters: list[FilterCondition], app: AppDep) -> View:
    return await app.set_view_filters(database_id, view_id, filters)


@router.put(
    "/databases/{database_id}/views/{view_id}/sorts",
    summary="Save view sorts",
    operation_id="setViewSorts",
    responses={
        200: {"description": "Updated view"},
        400: {"model": ErrorResponse, "description": "Unknown property"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def set_view_sorts(database_id: str, view_id: str, sorts: list[SortConfig], app: AppDep) -> View:
    return await app.set_view_sorts(database_id, view_id, sorts)


@router.patch(
    "/databases/{database_id}/records/{record_id}/cells/{property_id}",
    summary="Update cell",
    operation_id="updateCell",
    responses={
        200: {"description": "Updated record"},
        400: {"model": ErrorResponse, "description": "Unknown property"},
        404: {"model": ErrorResponse, "description": "Database or record not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def update_cell(
    database_id: str, record_id: str, property_id: str, req: CellUpdateRequest, app: AppDep
) -> Record:
    return await app.update_cell(database_id, record_id, property_id, req.value)


@router.post(
    "/databases/{database_id}/views/{view_id}/records/{record_id}/move",
    summary="Move record to group",
    description="Set the grouping property of a record to the target group, or clear it for 'ungrouped'.",
    operation_id="moveRecord",
    responses={
        200: {"description": "Updated record"},
        400: {"model": ErrorResponse, "description": "View is not grouped or group does not exist"},
        404: {"model": ErrorResponse, "description": "Database, view or record not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def move_record(database_id: str, view_id: str, record_id: str, req: MoveRecordRequest, app: AppDep) -> Record:
    return await app.move_record(database_id, view_id, record_id, req.group_id)
