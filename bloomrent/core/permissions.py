"""
Role-based permissions

Explicit (Resource, Action) pairs mapped per role. Services never call the
policy directly; they go through the PermissionChecker carried on the
request context so a different policy can be injected.
"""
from enum import Enum
from typing import Dict, FrozenSet, Protocol, Tuple
import uuid

from bloomrent.models.user import UserRole


class Resource(str, Enum):
    PROPERTY = "property"
    UNIT = "unit"
    TENANT = "tenant"
    INVITE = "invite"


class Action(str, Enum):
    CREATE = "create"
    VIEW = "view"
    LIST = "list"
    UPDATE = "update"
    DELETE = "delete"
    ARCHIVE = "archive"


Permission = Tuple[Resource, Action]


def _grant(resource: Resource, *actions: Action) -> FrozenSet[Permission]:
    return frozenset((resource, action) for action in actions)


_ALL_ACTIONS = tuple(Action)

ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = {
    UserRole.ADMIN: frozenset(
        (resource, action) for resource in Resource for action in Action
    ),
    UserRole.OWNER: (
        _grant(Resource.PROPERTY, *_ALL_ACTIONS)
        | _grant(Resource.UNIT, *_ALL_ACTIONS)
        | _grant(Resource.TENANT, *_ALL_ACTIONS)
        | _grant(
            Resource.INVITE,
            Action.CREATE, Action.VIEW, Action.LIST, Action.UPDATE, Action.DELETE,
        )
    ),
    UserRole.MANAGER: (
        _grant(Resource.PROPERTY, Action.VIEW, Action.LIST)
        | _grant(Resource.UNIT, Action.VIEW, Action.LIST)
        | _grant(Resource.TENANT, Action.VIEW, Action.LIST)
        | _grant(Resource.INVITE, Action.VIEW, Action.LIST)
    ),
    UserRole.TENANT: (
        _grant(Resource.PROPERTY, Action.VIEW)
        | _grant(Resource.UNIT, Action.VIEW)
    ),
}


class PermissionChecker(Protocol):
    def __call__(
        self, user_id: uuid.UUID, role: UserRole, resource: Resource, action: Action
    ) -> bool:
        ...


class RolePermissionChecker:
    """Default policy: look the pair up in a role -> permissions table."""

    def __init__(self, table: Dict[UserRole, FrozenSet[Permission]] = ROLE_PERMISSIONS):
        self.table = table

    def __call__(
        self, user_id: uuid.UUID, role: UserRole, resource: Resource, action: Action
    ) -> bool:
        try:
            role = UserRole(role)
        except ValueError:
            return False
        return (resource, action) in self.table.get(role, frozenset())


default_permission_checker = RolePermissionChecker()
