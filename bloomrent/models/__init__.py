# Import all models in dependency order so relationship strings resolve
from bloomrent.models.user import User, UserRole
from bloomrent.models.property import (
    Property, PropertyStatus, PropertyType, PropertyUnitType, Unit,
)
from bloomrent.models.tenant import Tenant, TenantStatus
from bloomrent.models.invite import Invite, InviteRole, InviteStatus

__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyStatus",
    "PropertyType",
    "PropertyUnitType",
    "Unit",
    "Tenant",
    "TenantStatus",
    "Invite",
    "InviteRole",
    "InviteStatus",
]
