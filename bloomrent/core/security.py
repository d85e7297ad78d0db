"""
Session token handling
Issues and decodes the signed bearer tokens the session resolver reads.
"""
from datetime import datetime, timedelta, timezone
import logging
from typing import Optional

from jose import JWTError, jwt

from bloomrent.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    role: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create JWT access token"""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {
        "sub": str(subject),
        "exp": datetime.now(timezone.utc) + expires_delta,
    }
    if role:
        to_encode["role"] = role

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode a JWT, returning None when it is invalid or expired"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT decode error: {e}")
        return None
