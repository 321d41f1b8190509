"""Bearer token handling.

Credential verification happens upstream; this module only issues and decodes
the signed session token that carries the principal.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from edutrack.core.config import settings


class TokenPayload(BaseModel):
    """JWT token payload."""

    sub: str
    role: str
    name: str
    school_id: Optional[str] = None
    exp: datetime
    iat: datetime


def create_access_token(
    subject: str,
    role: str,
    name: str,
    school_id: Optional[str],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a JWT access token."""
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode: dict[str, Any] = {
        "sub": subject,
        "role": role,
        "name": name,
        "school_id": school_id,
        "exp": expire,
        "iat": now,
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[TokenPayload]:
    """Decode and validate a JWT token."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
        return TokenPayload(**payload)
    except (JWTError, ValueError):
        return None
