"""Request dependencies: database location, search cache and the caller."""

from pathlib import Path

from fastapi import Depends, Header, Request

from ..db.repositories import UserRepository
from ..errors import AuthenticationError, PermissionDeniedError
from ..models.user import User
from ..services.search import SearchCache


def get_db_path(request: Request) -> Path:
    """Database path from app state."""
    return request.app.state.db_path


def get_search_cache(request: Request) -> SearchCache:
    """Shared search cache from app state."""
    return request.app.state.search_cache


async def get_current_user(
    request: Request,
    x_user_id: str | None = Header(None),
    x_user_name: str | None = Header(None),
    x_user_email: str | None = Header(None),
) -> User:
    """The caller, as identified by the upstream auth proxy.

    The user row is created on first sight; the role always comes from the
    database, never from headers.
    """
    if not x_user_id:
        raise AuthenticationError("Unauthorized")

    users = UserRepository(get_db_path(request))
    return await users.upsert(x_user_id, name=x_user_name, email=x_user_email)


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """The caller, who must be an admin."""
    if not user.is_admin:
        raise PermissionDeniedError("Admin privileges required")
    return user
