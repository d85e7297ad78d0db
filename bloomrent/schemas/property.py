"""
Property & Unit Pydantic Schemas - API Request/Response Models
"""
from datetime import datetime
from decimal import Decimal
import re
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from bloomrent.models.property import PropertyStatus, PropertyType, PropertyUnitType

PHONE_REGEX = re.compile(r"^\+[1-9]\d{1,14}$")


def validate_phone(value: Optional[str]) -> Optional[str]:
    """E.164, e.g. +14155550123. Blank means not provided."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not PHONE_REGEX.match(value):
        raise ValueError("Phone number must be in E.164 format, e.g. +14155550123")
    return value


# ==================== Units ====================

class UnitBase(BaseModel):
    unit_number: str = Field(..., min_length=1, max_length=50)
    bedrooms: int = Field(0, ge=0)
    bathrooms: Decimal = Field(Decimal("0"), ge=0, max_digits=3, decimal_places=1)
    rent_amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    deposit_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class UnitCreate(UnitBase):
    pass


class UnitsCreate(BaseModel):
    units: List[UnitCreate] = Field(..., min_length=1)


class UnitUpdate(BaseModel):
    unit_number: Optional[str] = Field(None, min_length=1, max_length=50)
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[Decimal] = Field(None, ge=0, max_digits=3, decimal_places=1)
    rent_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    deposit_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class UnitResponse(UnitBase):
    id: UUID
    property_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ==================== Properties ====================

class PropertyDraftCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    property_type: PropertyType = PropertyType.SINGLE_FAMILY_HOME
    unit_type: Optional[PropertyUnitType] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    address_line_1: str = Field(..., min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=100)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("US", min_length=2, max_length=2)
    year_built: Optional[int] = Field(None, ge=1700)
    building_sq_ft: Optional[int] = Field(None, ge=0)
    lot_sq_ft: Optional[int] = Field(None, ge=0)

    @field_validator("contact_phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)

    @field_validator("country")
    @classmethod
    def upper_country(cls, v):
        return v.upper()


class PropertyDraftUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    property_type: Optional[PropertyType] = None
    unit_type: Optional[PropertyUnitType] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    address_line_1: Optional[str] = Field(None, min_length=1, max_length=255)
    address_line_2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=100)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, min_length=2, max_length=2)
    year_built: Optional[int] = Field(None, ge=1700)
    building_sq_ft: Optional[int] = Field(None, ge=0)
    lot_sq_ft: Optional[int] = Field(None, ge=0)

    @field_validator("contact_phone")
    @classmethod
    def check_phone(cls, v):
        return validate_phone(v)


class PropertySummary(BaseModel):
    id: UUID
    name: str
    address_line_1: str
    address_line_2: Optional[str] = None
    city: str
    state: str
    zip_code: str
    country: str
    property_status: PropertyStatus

    model_config = {"from_attributes": True}


class PropertyResponse(PropertySummary):
    owner_id: UUID
    description: Optional[str] = None
    property_type: PropertyType
    unit_type: Optional[PropertyUnitType] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    year_built: Optional[int] = None
    building_sq_ft: Optional[int] = None
    lot_sq_ft: Optional[int] = None
    created_at: datetime
    updated_at: datetime


class PropertyDetailResponse(PropertyResponse):
    units: List[UnitResponse] = []


class PropertyListItem(PropertyResponse):
    units_count: int = 0
    bedrooms: Optional[int] = None
    bathrooms: Optional[Decimal] = None


class PropertyWithUnitsCount(BaseModel):
    property: PropertyResponse
    units_count: int


class PropertyAvailability(BaseModel):
    property: PropertyResponse
    total_units: int
    available_units: int
