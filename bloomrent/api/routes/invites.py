"""
Invitation Routes
Owner-side invite management plus the public token lookup and acceptance
"""
from typing import List
from uuid import UUID
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from bloomrent.core.config import settings
from bloomrent.core.deps import get_request_context, raise_for_result
from bloomrent.database import get_db
from bloomrent.schemas.invite import (
    InviteByToken, InviteCreate, InviteCreatedResponse, InviteDetailResponse,
    InviteResponse, InviteStatusUpdate,
)
from bloomrent.services import invite_service
from bloomrent.services.context import RequestContext

router = APIRouter(tags=["invites"])
logger = logging.getLogger(__name__)


# ==================== OWNER ====================

@router.post("/", response_model=InviteCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_invite(
    invite_in: InviteCreate,
    ctx: RequestContext = Depends(get_request_context),
):
    """Issue (or re-issue) an invitation; the response carries the link to send"""
    result = raise_for_result(
        invite_service.create_invite(
            ctx,
            invite_in.property_id,
            invite_in.tenant_id,
            invite_in.invitee_email,
            invite_in.invitee_name,
        )
    )
    invite = result.data
    # Email delivery is out of scope; the owner's client sends the link
    return InviteCreatedResponse(
        **InviteResponse.model_validate(invite).model_dump(),
        token=invite.token,
        accept_url=settings.invite_accept_url(invite.token),
    )


@router.get("/", response_model=List[InviteDetailResponse])
def list_invites(ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(invite_service.list_invites(ctx))
    return [InviteDetailResponse.from_details(details) for details in result.data]


# ==================== PUBLIC TOKEN FLOW ====================

@router.get("/token/{token}", response_model=InviteByToken)
def get_invite_by_token(token: str, db: Session = Depends(get_db)):
    """What the acceptance page shows; no session needed"""
    result = raise_for_result(invite_service.get_invite_by_token(db, token))
    return result.data


@router.post("/token/{token}/accept", response_model=InviteResponse)
def accept_invite(token: str, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(invite_service.accept_invite(ctx, token))
    return result.data


# ==================== SINGLE INVITE ====================

@router.get("/{invite_id}", response_model=InviteDetailResponse)
def get_invite(invite_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(invite_service.get_invite(ctx, invite_id))
    return InviteDetailResponse.from_details(result.data)


@router.patch("/{invite_id}/status", response_model=InviteResponse)
def update_invite_status(
    invite_id: UUID,
    status_in: InviteStatusUpdate,
    ctx: RequestContext = Depends(get_request_context),
):
    result = raise_for_result(
        invite_service.update_invite_status(ctx, invite_id, status_in.status)
    )
    return result.data


@router.post("/{invite_id}/revoke", response_model=InviteResponse)
def revoke_invite(invite_id: UUID, ctx: RequestContext = Depends(get_request_context)):
    result = raise_for_result(invite_service.revoke_invite(ctx, invite_id))
    return result.data
