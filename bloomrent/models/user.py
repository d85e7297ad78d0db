"""
User Model - identity provider record
Only the fields the guards and the invite acceptance flow read.
"""
from enum import Enum
import uuid

from sqlalchemy import String, Enum as SQLEnum, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from bloomrent.db.base import Base, TimestampMixin


class UserRole(str, Enum):
    ADMIN = "admin"
    OWNER = "owner"
    TENANT = "tenant"
    MANAGER = "manager"


def enum_values(enum_cls):
    """Persist enum values ("active") rather than member names ("ACTIVE")."""
    return [member.value for member in enum_cls]


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=True)
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole, name="user_role", values_callable=enum_values),
        default=UserRole.OWNER,
        nullable=False,
        index=True,
    )

    properties = relationship("Property", back_populates="owner")
