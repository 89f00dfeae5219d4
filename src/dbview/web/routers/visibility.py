from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import Field

from dbview.core.models import CamelModel
from dbview.core.modules.view.models import ViewSettings
from dbview.core.modules.visibility.resolver import VisibilityMode, VisibilityResult, VisibilityStats
from dbview.web.deps import AppDep
from dbview.web.openapi import ErrorResponse

router = APIRouter(tags=["visibility"])

PREFIX = "/databases/{database_id}/views/{view_id}/visibility"


class TogglePropertyRequest(CamelModel):
    property_id: str = Field(..., description="Property to show or hide")
    visible: bool = Field(..., description="True to show, false to hide")


@router.get(
    PREFIX,
    summary="Get column visibility",
    description=(
        "Visible and hidden columns of a view. explicit_list gives the rendered columns, "
        "menu_display what the show/hide menu lists as hidden."
    ),
    operation_id="getVisibility",
    responses={
        200: {"description": "Visible and hidden properties"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
    },
)
async def get_visibility(
    database_id: str,
    view_id: str,
    app: AppDep,
    mode: Annotated[VisibilityMode, Query()] = VisibilityMode.EXPLICIT_LIST,
) -> VisibilityResult:
    return await app.get_visibility(database_id, view_id, mode)


@router.get(
    PREFIX + "/stats",
    summary="Get column visibility counts",
    operation_id="getVisibilityStats",
    responses={
        200: {"description": "Counts of visible, hidden and unassigned properties"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
    },
)
async def get_visibility_stats(database_id: str, view_id: str, app: AppDep) -> VisibilityStats:
    return await app.get_visibility_stats(database_id, view_id)


@router.post(
    PREFIX + "/toggle",
    summary="Show or hide a column",
    operation_id="toggleProperty",
    responses={
        200: {"description": "Updated view settings"},
        404: {"model": ErrorResponse, "description": "Database, view or property not found"},
        409: {"model": ErrorResponse, "description": "System or required property cannot be hidden"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def toggle_property(database_id: str, view_id: str, req: TogglePropertyRequest, app: AppDep) -> ViewSettings:
    return await app.toggle_property(database_id, view_id, req.property_id, req.visible)


@router.post(
    PREFIX + "/show-all",
    summary="Show all columns",
    operation_id="showAllProperties",
    responses={
        200: {"description": "Updated view settings"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def show_all(database_id: str, view_id: str, app: AppDep) -> ViewSettings:
    return await app.show_all_properties(database_id, view_id)


@router.post(
    PREFIX + "/hide-all",
    summary="Hide all columns",
    description="Hide every column except system and required ones.",
    operation_id="hideAllProperties",
    responses={
        200: {"description": "Updated view settings"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def hide_all(database_id: str, view_id: str, app: AppDep) -> ViewSettings:
    return await app.hide_all_properties(database_id, view_id)


@router.post(
    PREFIX + "/reset",
    summary="Reset columns to default",
    description="Show system, required and the configured default columns; hide the rest.",
    operation_id="resetProperties",
    responses={
        200: {"description": "Updated view settings"},
        404: {"model": ErrorResponse, "description": "Database or view not found"},
        502: {"model": ErrorResponse, "description": "Record store rejected the change"},
    },
)
async def reset_to_default(database_id: str, view_id: str, app: AppDep) -> ViewSettings:
    return await app.reset_properties_to_default(database_id, view_id)
