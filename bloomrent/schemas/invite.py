"""
Invite Pydantic Schemas - API Request/Response Models
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from bloomrent.models.invite import InviteRole, InviteStatus
from bloomrent.schemas.property import PropertySummary
from bloomrent.schemas.tenant import TenantSummary


class InviteCreate(BaseModel):
    property_id: UUID
    tenant_id: UUID
    invitee_email: EmailStr
    invitee_name: Optional[str] = Field(None, max_length=255)


class InviteStatusUpdate(BaseModel):
    status: InviteStatus


class InviteResponse(BaseModel):
    id: UUID
    property_id: UUID
    owner_id: UUID
    tenant_id: Optional[UUID] = None
    invitee_email: str
    invitee_name: Optional[str] = None
    role: InviteRole
    status: InviteStatus
    expires_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InviteCreatedResponse(InviteResponse):
    """Returned to the owner right after creation so the link can be sent."""
    token: str
    accept_url: str


class InviteDetailResponse(InviteResponse):
    property: Optional[PropertySummary] = None
    tenant: Optional[TenantSummary] = None

    @classmethod
    def from_details(cls, details) -> "InviteDetailResponse":
        """Build from an (invite, property, tenant) row"""
        return cls(
            **InviteResponse.model_validate(details.invite).model_dump(),
            property=PropertySummary.model_validate(details.property) if details.property else None,
            tenant=TenantSummary.model_validate(details.tenant) if details.tenant else None,
        )


# Public token lookup: only what the acceptance page needs
class InvitePropertyInfo(BaseModel):
    name: Optional[str] = None
    address: str


class InviteTenantInfo(BaseModel):
    name: str


class InviteByToken(BaseModel):
    id: UUID
    tenant_id: Optional[UUID] = None
    status: InviteStatus
    expires_at: Optional[datetime] = None
    invitee_name: Optional[str] = None
    invitee_email: str
    role: InviteRole
    property: Optional[InvitePropertyInfo] = None
    tenant: Optional[InviteTenantInfo] = None
