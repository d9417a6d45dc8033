from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# request.state.auth_status values
MISSING = "missing"
INVALID = "invalid"
AUTHENTICATED = "authenticated"


def extract_bearer(auth: Optional[str]) -> Optional[str]:
    if auth and auth.lower().startswith("bearer "):
        token = auth.split(" ", 1)[1].strip()
        return token or None
    return None


class AuthMiddleware(BaseHTTPMiddleware):
    """Resolves the bearer token, if any, into ``request.state.identity``.

    Never rejects on its own; the route-level gate in
    ``storerate.auth.dependencies`` decides what a missing or invalid token
    means for the route being called.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.identity = None
        request.state.auth_status = MISSING

        token = extract_bearer(request.headers.get("Authorization"))
        if token:
            identity = request.app.state.token_service.verify(token)
            if identity is None:
                request.state.auth_status = INVALID
            else:
                request.state.identity = identity
                request.state.auth_status = AUTHENTICATED

        response = await call_next(request)
        return response
