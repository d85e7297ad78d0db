from bloomrent.api.routes.properties import router as properties_router
from bloomrent.api.routes.tenants import router as tenants_router
from bloomrent.api.routes.invites import router as invites_router

__all__ = [
    "properties_router",
    "tenants_router",
    "invites_router",
]
