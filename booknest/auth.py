"""
Bearer token authentication for protected routes.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from booknest.database import USERS
from booknest.errors import AuthenticationError, TokenExpiredError, TokenInvalidError

logger = structlog.get_logger(__name__)

# Declares the bearer scheme in the OpenAPI document. The header itself is
# read by get_current_user, which only accepts the exact "Bearer " prefix.
security = HTTPBearer(auto_error=False, description="Token returned by the login endpoint")

BEARER_PREFIX = "Bearer "


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> Dict[str, Any]:
    """
    Resolve the bearer token on the request to a stored user.

    The user is also attached to `request.state.user`.

    Args:
        request: Incoming request
        credentials: Unused, present so the route advertises the bearer scheme

    Returns:
        The stored user document

    Raises:
        AuthenticationError: If the header is missing, the token does not
            verify, or the user it names no longer exists
    """
    authorization = request.headers.get("Authorization")
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        logger.warning("Authorization header missing", path=request.url.path)
        raise AuthenticationError("Unauthorized", reason="missing bearer token")
    token = authorization[len(BEARER_PREFIX):]

    token_service = request.app.state.token_service
    try:
        claims = token_service.verify(token)
    except TokenExpiredError as e:
        logger.warning("Token verification failed: expired", path=request.url.path, error=str(e))
        raise AuthenticationError("Invalid token", reason="expired token") from e
    except TokenInvalidError as e:
        logger.warning("Token verification failed: invalid", path=request.url.path, error=str(e))
        raise AuthenticationError("Invalid token", reason="invalid token") from e

    user_id = claims["sub"]
    user = await request.app.state.store.find_by_id(USERS, user_id)
    if user is None:
        logger.warning("User not found for token", user_id=user_id)
        raise AuthenticationError("Invalid token user", reason="unknown user")

    request.state.user = user
    logger.debug("Token verified", user_id=user_id)
    return user
