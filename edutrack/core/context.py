"""Per-request context shared by the middleware, the auth dependencies and logging.

Keys: ``request_id``, ``ip_address``, ``path`` (set by the middleware) and
``user_id``, ``role``, ``school_id`` (set once the bearer token is validated).
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

_request_context: ContextVar[Dict[str, Any]] = ContextVar("edutrack_request_context", default={})


def set_context(context: Dict[str, Any]) -> Token:
    """Start a request's context. Hand the returned token to ``reset_context``."""
    return _request_context.set(dict(context))


def reset_context(token: Token) -> None:
    _request_context.reset(token)


def bind_principal(user_id: str, role: str, school_id: Optional[str]) -> None:
    """Record the authenticated caller for the rest of the request."""
    ctx = dict(_request_context.get())
    ctx.update(user_id=user_id, role=role, school_id=school_id)
    _request_context.set(ctx)


def get_context_value(key: str, default: Any = None) -> Any:
    return _request_context.get().get(key, default)
