import logging
from typing import FrozenSet

from fastapi import Depends, Request

from storerate.auth.password import PasswordHasher
from storerate.auth.token import Identity, TokenService
from storerate.core.errors import Forbidden, Unauthorized
from storerate.middleware.auth_middleware import AUTHENTICATED, MISSING

logger = logging.getLogger(__name__)


def get_hasher(request: Request) -> PasswordHasher:
    return request.app.state.hasher


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_identity(request: Request) -> Identity:
    """First gate: the request must carry a valid token."""
    status = getattr(request.state, "auth_status", MISSING)
    identity = getattr(request.state, "identity", None)
    if status == AUTHENTICATED and identity is not None:
        return identity
    logger.debug("Rejected %s %s: %s token", request.method, request.url.path, status)
    if status == MISSING:
        raise Unauthorized("Missing credentials")
    raise Unauthorized("Invalid or expired credentials")


class RoleGate:
    """Second gate: the authenticated role must be in a static allowed set."""

    def __init__(self, *roles):
        self.allowed: FrozenSet[str] = frozenset(getattr(r, "value", r) for r in roles)

    def __call__(self, request: Request, identity: Identity = Depends(get_identity)) -> Identity:
        if identity.role.value not in self.allowed:
            logger.debug("Rejected %s %s: role %s", request.method, request.url.path, identity.role.value)
            raise Forbidden()
        return identity


def require_roles(*roles) -> RoleGate:
    return RoleGate(*roles)
