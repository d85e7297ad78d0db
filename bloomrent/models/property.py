"""
Property and Unit Models
A property belongs to exactly one owner; units cascade with their property.
"""
from decimal import Decimal
from enum import Enum
from typing import List, Optional
import uuid

from sqlalchemy import (
    CheckConstraint, Enum as SQLEnum, ForeignKey, Index, Integer, Numeric,
    String, Text, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bloomrent.db.base import Base, TimestampMixin
from bloomrent.models.user import enum_values


class PropertyStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    COMING_SOON = "coming_soon"
    ARCHIVED = "archived"


class PropertyUnitType(str, Enum):
    SINGLE_UNIT = "single_unit"
    MULTI_UNIT = "multi_unit"


class PropertyType(str, Enum):
    APARTMENT = "apartment"
    SINGLE_FAMILY_HOME = "single_family_home"
    CONDO = "condo"
    CO_OP = "co-op"
    TOWNHOUSE = "townhouse"
    DUPLEX = "duplex"
    TRIPLEX = "triplex"
    FOURPLEX = "fourplex"
    STUDIO = "studio"
    LOFT = "loft"
    PENTHOUSE = "penthouse"
    BUNGALOW = "bungalow"
    COTTAGE = "cottage"
    CABIN = "cabin"
    VILLA = "villa"
    MOBILE_HOME = "mobile_home"
    MANUFACTURED_HOME = "manufactured_home"
    TINY_HOUSE = "tiny_house"


class Property(Base, TimestampMixin):
    __tablename__ = "properties"
    __table_args__ = (
        Index(
            "property_owner_address_uid",
            "owner_id", "address_line_1", "city", "state", "zip_code", "country",
            unique=True,
        ),
        CheckConstraint(
            "year_built IS NULL OR year_built >= 1700",
            name="property_year_built_range",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    property_status: Mapped[PropertyStatus] = mapped_column(
        SQLEnum(PropertyStatus, name="property_status", values_callable=enum_values),
        default=PropertyStatus.DRAFT,
        nullable=False,
    )
    property_type: Mapped[PropertyType] = mapped_column(
        SQLEnum(PropertyType, name="property_type", values_callable=enum_values),
        default=PropertyType.SINGLE_FAMILY_HOME,
        nullable=False,
    )
    unit_type: Mapped[Optional[PropertyUnitType]] = mapped_column(
        SQLEnum(PropertyUnitType, name="property_unit_type", values_callable=enum_values),
        nullable=True,
    )

    contact_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    # Address
    address_line_1: Mapped[str] = mapped_column(String(255), nullable=False)
    address_line_2: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    city: Mapped[str] = mapped_column(String(100), nullable=False)
    state: Mapped[str] = mapped_column(String(100), nullable=False)
    zip_code: Mapped[str] = mapped_column(String(20), nullable=False)
    country: Mapped[str] = mapped_column(String(2), nullable=False)

    year_built: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    building_sq_ft: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    lot_sq_ft: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Relationships
    owner = relationship("User", back_populates="properties")
    units: Mapped[List["Unit"]] = relationship(
        "Unit", back_populates="property", cascade="all, delete-orphan", passive_deletes=True
    )

    @property
    def formatted_address(self) -> str:
        parts = [self.address_line_1]
        if self.address_line_2:
            parts.append(self.address_line_2)
        parts.append(f"{self.city}, {self.state} {self.zip_code}")
        return ", ".join(parts)


class Unit(Base, TimestampMixin):
    __tablename__ = "units"
    __table_args__ = (
        Index("unit_property_unit_number_uid", "property_id", "unit_number", unique=True),
        CheckConstraint("bedrooms >= 0", name="unit_bedrooms_non_negative"),
        CheckConstraint("bathrooms >= 0", name="unit_bathrooms_non_negative"),
        CheckConstraint("rent_amount >= 0", name="unit_rent_amount_non_negative"),
        CheckConstraint(
            "deposit_amount IS NULL OR deposit_amount >= 0",
            name="unit_deposit_amount_non_negative",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )

    unit_number: Mapped[str] = mapped_column(String(50), nullable=False)
    bedrooms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    bathrooms: Mapped[Decimal] = mapped_column(Numeric(3, 1), nullable=False, default=0)
    rent_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    deposit_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    property = relationship("Property", back_populates="units")
    tenants = relationship("Tenant", back_populates="unit", passive_deletes=True)
