"""
Bearer token authentication dependencies.

Tokens are HS256 JWTs issued by the identity service carrying userId,
email, organisationId and role claims. This API only verifies them.

Dependencies: PyJWT, fastapi.security, backend.configs
System role: Request authentication and role checks
"""

import logging
from typing import Callable

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError as PydanticValidationError

from backend.configs import get_settings
from backend.core.exceptions import ForbiddenError, UnauthorizedError
from backend.models.auth import Principal, Role

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> Principal:
    """
    Verify a JWT and extract the caller's identity.

    Args:
        token: Encoded JWT

    Returns:
        Principal: Verified claims

    Raises:
        UnauthorizedError: Token expired, malformed, badly signed or missing claims
    """
    auth = get_settings().auth
    try:
        claims = jwt.decode(token, auth.jwt_secret, algorithms=[auth.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise UnauthorizedError("Authentication token expired") from e
    except jwt.InvalidTokenError as e:
        raise UnauthorizedError("Invalid authentication token") from e

    try:
        return Principal.model_validate(claims)
    except PydanticValidationError as e:
        logger.warning(f"{__name__}:decode_access_token - Token claims rejected: {e.error_count()} error(s)")
        raise UnauthorizedError("Invalid authentication token") from e


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Principal:
    """
    FastAPI dependency resolving the authenticated caller.

    Raises:
        UnauthorizedError: Header missing or token invalid
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Authorization header required")
    return decode_access_token(credentials.credentials)


def require_role(*roles: Role) -> Callable[..., Principal]:
    """
    Build a dependency that admits only the given roles.

    Usage:
        @router.post("/jobs/{job_id}/cancel")
        async def cancel(principal: Principal = Depends(require_role(Role.ADMIN, Role.EDITOR))):
            ...
    """
    allowed = frozenset(roles)

    async def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in allowed:
            raise ForbiddenError("Insufficient permissions")
        return principal

    return dependency
