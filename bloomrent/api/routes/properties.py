"""
Property Routes
Add-property wizard, units, publishing/archiving and unit availability
"""
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, status

from bloomrent.core.deps import get_request_context, raise_for_result
from bloomrent.schemas.property import (
    PropertyAvailability, PropertyDetailResponse, PropertyDraftCreate,
    PropertyDraftUpdate, PropertyListItem, PropertyResponse,
    PropertyWithUnitsCount, UnitResponse, UnitsCreate, UnitUpdate,
)
from bloomrent.services import property_service
from bloomrent.services.context import RequestContext

router = APIRouter(tags=["properties"])
logger = logging.getLogger(__name__)


# ==================== PROPERTY WIZARD ====================

@router.post("/", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED)
def create_property_draft(
    property_in: PropertyDraftCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Start the add-property wizard with a draft property"""
    result = raise_for_result(
        property_service.create_property_draft(ctx, property_in.model_dump())
    )
    return result.data


@router.get("/", response_model=List[PropertyListItem])
def list_properties(ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(property_service.list_properties(ctx))
    return [
        PropertyListItem(
            **PropertyResponse.model_validate(row.property).model_dump(),
            units_count=row.units_count,
            bedrooms=row.bedrooms,
            bathrooms=row.bathrooms,
        )
        for row in result.data
    ]


@router.get("/draft", response_model=Optional[PropertyWithUnitsCount])
def get_draft_property(ctx: RequestContext = Depends(get_request_context)):
    """The draft the wizard should resume, or null"""
    result = raise_for_result(property_service.get_draft_property(ctx))
    if result.data is None:
        return None
    return PropertyWithUnitsCount(
        property=PropertyResponse.model_validate(result.data.property),
        units_count=result.data.units_count,
    )


@router.get("/available-units", response_model=List[PropertyAvailability])
def list_properties_with_available_units(ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(property_service.list_properties_with_available_units(ctx))
    return [
        PropertyAvailability(
            property=PropertyResponse.model_validate(row.property),
            total_units=row.total_units,
            available_units=row.available_units,
        )
        for row in result.data
    ]


# ==================== UNITS ====================

@router.patch("/units/{unit_id}", response_model=UnitResponse)
def update_unit(
    unit_id: UUID,
    unit_in: UnitUpdate,
    ctx: RequestContext = Depends(get_request_context),
):
    result = raise_for_result(
        property_service.update_unit(ctx, unit_id, unit_in.model_dump(exclude_unset=True))
    )
    return result.data


# ==================== SINGLE PROPERTY ====================

@router.get("/{property_id}", response_model=PropertyDetailResponse)
def get_property(property_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(property_service.get_property(ctx, property_id))
    return result.data


@router.patch("/{property_id}", response_model=PropertyResponse)
def update_property_draft(
    property_id: UUID,
    property_in: PropertyDraftUpdate,
    ctx: RequestContext = Depends(get_request_context),
):
    result = raise_for_result(
        property_service.update_property_draft(
            ctx, property_id, property_in.model_dump(exclude_unset=True)
        )
    )
    return result.data


@router.post("/{property_id}/publish", response_model=PropertyResponse)
def publish_property(property_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(property_service.publish_property(ctx, property_id))
    return result.data


@router.post("/{property_id}/archive", response_model=PropertyResponse)
def archive_property(property_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(property_service.archive_property(ctx, property_id))
    return result.data


@router.post(
    "/{property_id}/units",
    response_model=List[UnitResponse],
    status_code=status.HTTP_201_CREATED,
)
def create_units(
    property_id: UUID,
    units_in: UnitsCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    result = raise_for_result(
        property_service.create_units(
            ctx, property_id, [unit.model_dump() for unit in units_in.units]
        )
    )
    return result.data


@router.get("/{property_id}/available-units", response_model=List[UnitResponse])
def list_available_units(property_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    """Units with no open lease, for assigning a tenant"""
    result = raise_for_result(property_service.list_available_units(ctx, property_id))
    return result.data
