"""
Invite Model
Owner-issued invitation for a tenant to join a property.
"""
from datetime import datetime
from enum import Enum
from typing import Optional
import uuid

from sqlalchemy import DateTime, Enum as SQLEnum, ForeignKey, Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bloomrent.db.base import Base, TimestampMixin
from bloomrent.models.user import enum_values


class InviteStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REVOKED = "revoked"
    EXPIRED = "expired"


class InviteRole(str, Enum):
    TENANT = "tenant"
    MANAGER = "manager"


class Invite(Base, TimestampMixin):
    __tablename__ = "invites"
    __table_args__ = (
        Index("invite_property_email_uid", "property_id", "invitee_email", unique=True),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    property_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False, index=True
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    manager_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    tenant_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True
    )

    # Stored lowercased
    invitee_email: Mapped[str] = mapped_column(String(255), nullable=False)
    invitee_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    role: Mapped[InviteRole] = mapped_column(
        SQLEnum(InviteRole, name="invite_role", values_callable=enum_values),
        default=InviteRole.TENANT,
        nullable=False,
    )
    status: Mapped[InviteStatus] = mapped_column(
        SQLEnum(InviteStatus, name="invite_status", values_callable=enum_values),
        default=InviteStatus.PENDING,
        nullable=False,
        index=True,
    )
    token: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)

    expires_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    accepted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    property = relationship("Property")
    tenant = relationship("Tenant")
