"""
FastAPI Dependencies.

Shared dependencies for request handling: database session, cache client,
request ID and the authenticated principal.
"""

import uuid
from typing import Annotated

import structlog
from fastapi import Depends, Header, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from notekeeper.core.cache import CacheClient, get_cache
from notekeeper.core.database import get_db_session
from notekeeper.core.exceptions import AuthenticationError, AuthorizationError
from notekeeper.core.logging import get_logger
from notekeeper.models.user import User
from notekeeper.services.auth import AuthService

logger = get_logger(__name__)

# Type alias for database session dependency
DbSession = Annotated[AsyncSession, Depends(get_db_session)]

# Type alias for cache client dependency
Cache = Annotated[CacheClient, Depends(get_cache)]

_bearer = HTTPBearer(auto_error=False, description="JWT access token")


async def get_request_id(request: Request, x_request_id: str | None = Header(None)) -> str:
    """
    Return the request ID set by RequestContextMiddleware.

    Falls back to the header, then to a fresh UUID.
    """
    return getattr(request.state, "request_id", None) or x_request_id or str(uuid.uuid4())


RequestId = Annotated[str, Depends(get_request_id)]


async def get_current_user(
    session: DbSession,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)],
) -> User:
    """
    Resolve the bearer token to an enabled user.

    Raises:
        AuthenticationError: If the header is missing or the token does not
            resolve to an enabled user
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationError("Authentication required")

    user = await AuthService(session).resolve_principal(credentials.credentials)
    structlog.contextvars.bind_contextvars(user=user.username)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


async def require_admin(user: CurrentUser) -> User:
    """
    Allow only ADMIN principals.

    Raises:
        AuthorizationError: If the principal is not an admin
    """
    if not user.is_admin:
        logger.warning("Admin access denied", extra={"username": user.username})
        raise AuthorizationError("Admin role required")
    return user


AdminUser = Annotated[User, Depends(require_admin)]
