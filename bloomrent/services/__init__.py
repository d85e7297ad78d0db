from bloomrent.services import invite_service
from bloomrent.services import property_service
from bloomrent.services import tenant_service

__all__ = [
    "invite_service",
    "property_service",
    "tenant_service",
]
