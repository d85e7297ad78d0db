"""
Request dependencies: session resolution, request context, result translation
"""
import logging
from typing import Optional
import uuid

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bloomrent.core.security import decode_access_token
from bloomrent.database import get_db
from bloomrent.models.user import User
from bloomrent.services.context import RequestContext, SessionUser
from bloomrent.services.results import ErrorKind, ServiceResult

logger = logging.getLogger(__name__)

# auto_error=False: a missing token is not an HTTP error here; the services
# decide whether the operation needs a session
bearer_scheme = HTTPBearer(auto_error=False)

ERROR_STATUS = {
    ErrorKind.AUTHENTICATION_REQUIRED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def resolve_session(token: Optional[str], db: Session) -> Optional[SessionUser]:
    """
    Turn a bearer token into the signed-in user, or None.

    None covers every way of not being signed in: no token, a bad or expired
    token, or a token for a user that no longer exists.
    """
    if not token:
        return None

    payload = decode_access_token(token)
    if payload is None:
        return None

    subject = payload.get("sub")
    if subject is None:
        logger.warning("Token missing 'sub' field")
        return None

    try:
        user_id = uuid.UUID(str(subject))
    except ValueError:
        logger.warning(f"Token subject is not a user id: {subject}")
        return None

    user = db.get(User, user_id)
    if user is None:
        logger.warning(f"User not found in database: {user_id}")
        return None

    return SessionUser(id=user.id, role=user.role, email=user.email)


def get_request_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> RequestContext:
    token = credentials.credentials if credentials else None
    return RequestContext(db=db, user=resolve_session(token, db))


def raise_for_result(result: ServiceResult) -> ServiceResult:
    """Raise the HTTPException matching a failed result; pass successes through."""
    if result.success:
        return result

    status_code = ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    raise HTTPException(status_code=status_code, detail=result.message, headers=headers)
