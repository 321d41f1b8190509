"""API dependencies for authentication and authorization."""

from typing import Callable, Optional

from fastapi import Depends, Query, WebSocket
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from edutrack.core.context import bind_principal
from edutrack.core.exceptions import AuthenticationError, AuthorizationError
from edutrack.core.security import decode_token
from edutrack.db.session import get_db
from edutrack.models.identity import USER_TYPES, UserType
from edutrack.schemas.common import Principal
from edutrack.services.delivery_channel import DeliveryChannel, delivery_channel

__all__ = [
    "get_db",
    "get_current_user",
    "get_current_ws_user",
    "get_delivery_channel",
    "principal_from_token",
    "require_role",
]

security = HTTPBearer(auto_error=False)


def principal_from_token(token: Optional[str]) -> Optional[Principal]:
    """Turn a bearer token into a principal, or None when it is unusable."""
    if not token:
        return None
    payload = decode_token(token)
    if payload is None or payload.role not in USER_TYPES:
        return None
    return Principal(
        id=payload.sub,
        role=UserType(payload.role),
        name=payload.name,
        school_id=payload.school_id,
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """Get the authenticated principal from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")

    principal = principal_from_token(credentials.credentials)
    if principal is None:
        raise AuthenticationError("Invalid or expired token")

    bind_principal(principal.id, principal.role.value, principal.school_id)
    return principal


def require_role(*roles: UserType) -> Callable:
    """Dependency factory restricting an endpoint to the given roles."""

    async def checker(current_user: Principal = Depends(get_current_user)) -> Principal:
        if current_user.role not in roles:
            raise AuthorizationError()
        return current_user

    return checker


get_current_admin = require_role(UserType.ADMIN)


async def get_current_ws_user(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
) -> Optional[Principal]:
    """Authenticate a WebSocket from its ``token`` query parameter.

    Returns None instead of raising so the endpoint can close with a policy code.
    """
    return principal_from_token(token)


def get_delivery_channel() -> DeliveryChannel:
    return delivery_channel
