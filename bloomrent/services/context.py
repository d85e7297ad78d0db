"""
Per-request context handed to every guard and service call.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple
import uuid

from sqlalchemy.orm import Session

from bloomrent.core.permissions import (
    Action, PermissionChecker, Resource, default_permission_checker,
)
from bloomrent.models.user import UserRole
from bloomrent.services.results import ErrorKind, ServiceResult, fail

SIGNED_IN_REQUIRED = "Access Denied. You must be signed in."
ACCESS_DENIED = "Access Denied."


@dataclass(frozen=True)
class SessionUser:
    id: uuid.UUID
    role: UserRole
    email: Optional[str] = None


@dataclass
class RequestContext:
    db: Session
    user: Optional[SessionUser] = None
    permissions: PermissionChecker = default_permission_checker
    _granted: Dict[Tuple[Resource, Action], bool] = field(default_factory=dict, repr=False)

    @property
    def user_id(self) -> Optional[uuid.UUID]:
        return self.user.id if self.user else None

    def can(self, resource: Resource, action: Action) -> bool:
        """Permission answer, memoized for the lifetime of this request."""
        if self.user is None:
            return False
        key = (resource, action)
        if key not in self._granted:
            self._granted[key] = bool(
                self.permissions(self.user.id, self.user.role, resource, action)
            )
        return self._granted[key]


def require(
    ctx: RequestContext,
    resource: Resource,
    action: Action,
    doing: str,
    signed_in_message: str = SIGNED_IN_REQUIRED,
) -> Optional[ServiceResult]:
    """
    Session + permission gate shared by every service function.

    Returns the failure to hand back to the caller, or None when the
    caller may proceed. ``doing`` completes "You do not have permission to ...".
    """
    if ctx.user is None:
        return fail(ErrorKind.AUTHENTICATION_REQUIRED, signed_in_message)
    if not ctx.can(resource, action):
        return fail(
            ErrorKind.PERMISSION_DENIED,
            f"Access Denied. You do not have permission to {doing}.",
        )
    return None
