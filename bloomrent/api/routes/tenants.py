"""
Tenant Routes
Add-tenant wizard: draft -> update -> activate on a unit
"""
from typing import List, Optional
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, status

from bloomrent.core.deps import get_request_context, raise_for_result
from bloomrent.schemas.invite import InviteDetailResponse
from bloomrent.schemas.tenant import (
    TenantActivate, TenantDetailResponse, TenantDraftCreate,
    TenantDraftUpdate, TenantResponse,
)
from bloomrent.services import invite_service, tenant_service
from bloomrent.services.context import RequestContext

router = APIRouter(tags=["tenants"])
logger = logging.getLogger(__name__)


# ==================== TENANT WIZARD ====================

@router.post("/", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
def create_tenant_draft(
    tenant_in: TenantDraftCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Step 1: name plus email and/or phone"""
    result = raise_for_result(
        tenant_service.create_tenant_draft(ctx, tenant_in.name, tenant_in.email, tenant_in.phone)
    )
    return result.data


@router.get("/", response_model=List[TenantDetailResponse])
def list_tenants(ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(tenant_service.list_tenants(ctx))
    return [TenantDetailResponse.from_details(details) for details in result.data]


@router.get("/{tenant_id}", response_model=TenantDetailResponse)
def get_tenant(tenant_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(tenant_service.get_tenant(ctx, tenant_id))
    return TenantDetailResponse.from_details(result.data)


@router.patch("/{tenant_id}", response_model=TenantResponse)
def update_tenant_draft(
    tenant_id: UUID,
    tenant_in: TenantDraftUpdate,
    ctx: RequestContext = Depends(get_request_context),
):
    result = raise_for_result(
        tenant_service.update_tenant_draft(ctx, tenant_id, tenant_in.model_dump(exclude_unset=True))
    )
    return result.data


@router.post("/{tenant_id}/activate", response_model=TenantResponse)
def activate_tenant_draft(
    tenant_id: UUID,
    activate_in: TenantActivate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Final step: assign the unit and mark the tenant active"""
    result = raise_for_result(
        tenant_service.activate_tenant_draft(ctx, tenant_id, activate_in.unit_id)
    )
    return result.data


@router.get("/{tenant_id}/invite", response_model=Optional[InviteDetailResponse])
def get_tenant_invite(tenant_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    """Latest invitation sent to this tenant, or null"""
    result = raise_for_result(invite_service.get_invite_by_tenant(ctx, tenant_id))
    if result.data is None:
        return None
    return InviteDetailResponse.from_details(result.data)
