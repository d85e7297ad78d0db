"""
Tenant Model - Property Management
A tenant starts as a draft (no unit) and becomes active once assigned to a unit.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import (
    CheckConstraint, DateTime, Enum as SQLEnum, ForeignKey, Index, String, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bloomrent.db.base import Base, TimestampMixin
from bloomrent.models.user import enum_values


class TenantStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"
    INACTIVE = "inactive"


# At most one tenant per unit with an open lease
ACTIVE_TENANT_PER_UNIT_INDEX = "tenant_unit_active_uid"
_ACTIVE_TENANT_PREDICATE = text("lease_end_date IS NULL AND tenant_status = 'active'")


class Tenant(Base, TimestampMixin):
    __tablename__ = "tenants"
    __table_args__ = (
        Index(
            ACTIVE_TENANT_PER_UNIT_INDEX,
            "unit_id",
            unique=True,
            postgresql_where=_ACTIVE_TENANT_PREDICATE,
            sqlite_where=_ACTIVE_TENANT_PREDICATE,
        ),
        CheckConstraint(
            "email IS NOT NULL OR phone IS NOT NULL",
            name="tenant_contact_method_required",
        ),
        CheckConstraint(
            "lease_end_date IS NULL OR lease_start_date IS NULL OR lease_end_date > lease_start_date",
            name="tenant_lease_dates_ordered",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    unit_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("units.id", ondelete="CASCADE"), nullable=True, index=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    # Set once the invitee accepts and has an account
    user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    lease_start_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    lease_end_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    tenant_status: Mapped[TenantStatus] = mapped_column(
        SQLEnum(TenantStatus, name="tenant_status", values_callable=enum_values),
        default=TenantStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Relationships
    unit = relationship("Unit", back_populates="tenants")
    owner = relationship("User", foreign_keys=[owner_id])
    user = relationship("User", foreign_keys=[user_id])
