from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from edutrack.core.context import reset_context, set_context
from edutrack.core.security import decode_token


class RequestContextMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
    ):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id

        ctx = {
            "request_id": request_id,
            "ip_address": request.client.host if request.client else None,
            "path": request.url.path,
        }

        # Identity here is informational only, the auth dependency validates the token
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            payload = decode_token(auth_header.split(" ", 1)[1])
            if payload:
                ctx["user_id"] = payload.sub
                ctx["role"] = payload.role
                ctx["school_id"] = payload.school_id

        token = set_context(ctx)
        try:
            response = await call_next(request)
        finally:
            reset_context(token)
        response.headers["X-Request-Id"] = request_id
        return response
