"""Metadata endpoints for exposing system information."""

from fastapi import APIRouter

from dbview.core.modules.filter.models import FilterOperator
from dbview.core.modules.property.models import PropertyType
from dbview.web.deps import AppDep

router = APIRouter(tags=["metadata"])


@router.get(
    "/metadata/property-operators",
    summary="Get valid operators for each property type",
    description=(
        "Returns a mapping of property types to their valid filter operators. "
        "Property types without filter support map to an empty list."
    ),
    operation_id="getPropertyOperators",
    responses={200: {"description": "Mapping of property types to valid operators"}},
)
async def get_property_operators(app: AppDep) -> dict[PropertyType, list[FilterOperator]]:
    """Get valid operators for each property type."""
    return app.get_property_operators()
