"""
Service result envelope

Expected failures (no session, missing permission, not found, conflicts,
bad input) come back as ``ServiceResult(success=False, ...)`` instead of
being raised, so routes can translate them without try/except.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    AUTHENTICATION_REQUIRED = "authentication_required"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ServiceResult:
    success: bool
    data: Any = None
    message: Optional[str] = None
    error: Optional[ErrorKind] = None


def ok(data: Any = None, message: Optional[str] = None) -> ServiceResult:
    return ServiceResult(success=True, data=data, message=message)


def fail(error: ErrorKind, message: str) -> ServiceResult:
    return ServiceResult(success=False, message=message, error=error)
