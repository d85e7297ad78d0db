"""
Tenant Pydantic Schemas - API Request/Response Models
"""
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from bloomrent.db.base import as_utc
from bloomrent.models.tenant import TenantStatus
from bloomrent.schemas.property import PropertySummary, UnitResponse, validate_phone


class TenantDraftCreate(BaseModel):
    """Step 1 of the add-tenant wizard"""
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def blank_email(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class TenantDraftUpdate(BaseModel):
    """Later wizard steps: any subset of contact info and lease dates"""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    lease_start_date: Optional[datetime] = None
    lease_end_date: Optional[datetime] = None

    @field_validator("lease_start_date", "lease_end_date")
    @classmethod
    def lease_dates_utc(cls, v):
        return as_utc(v) if v is not None else v

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @model_validator(mode="after")
    def check_lease_dates(self):
        if self.lease_start_date and self.lease_end_date:
            if self.lease_end_date <= self.lease_start_date:
                raise ValueError("Lease end date must be after the lease start date.")
        return self


class TenantActivate(BaseModel):
    unit_id: UUID


class TenantSummary(BaseModel):
    id: UUID
    name: str

    model_config = {"from_attributes": True}


class TenantResponse(TenantSummary):
    unit_id: Optional[UUID] = None
    owner_id: UUID
    user_id: Optional[UUID] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    lease_start_date: Optional[datetime] = None
    lease_end_date: Optional[datetime] = None
    tenant_status: TenantStatus
    created_at: datetime
    updated_at: datetime


class TenantDetailResponse(TenantResponse):
    unit: Optional[UnitResponse] = None
    property: Optional[PropertySummary] = None

    @classmethod
    def from_details(cls, details) -> "TenantDetailResponse":
        """Build from a (tenant, unit, property) row"""
        return cls(
            **TenantResponse.model_validate(details.tenant).model_dump(),
            unit=UnitResponse.model_validate(details.unit) if details.unit else None,
            property=PropertySummary.model_validate(details.property) if details.property else None,
        )
