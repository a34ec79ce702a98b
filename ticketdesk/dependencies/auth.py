from collections.abc import Mapping
from typing import Annotated

from fastapi import Depends, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ticketdesk.tickets.models import Role, User
from ticketdesk.tickets.repository import UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


async def get_user_repository(request: Request) -> UserRepository:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise HTTPException(status_code=503, detail="Storage is not configured")
    return storage.users


async def get_token_map(request: Request) -> Mapping[str, int]:
    return getattr(request.app.state, "token_users", {})


async def resolve_user_from_token(token: str | None, tokens: Mapping[str, int], users: UserRepository) -> User:
    """Return the stored user behind a bearer token.

    Tokens are configured, not issued: each maps onto a user id registered at
    startup. The user is reloaded on every call so role changes apply at once.
    """

    if not token:
        raise HTTPException(status_code=401, detail="Missing or invalid token")

    user_id = tokens.get(token)
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid token")

    user = await users.get(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid token")
    return user


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(bearer_scheme)],
    request: Request,
    users: Annotated[UserRepository, Depends(get_user_repository)],
    tokens: Annotated[Mapping[str, int], Depends(get_token_map)],
) -> User:
    cached = getattr(request.state, "user", None)
    if isinstance(cached, User):
        return cached

    token = credentials.credentials if credentials is not None else None
    user = await resolve_user_from_token(token, tokens, users)
    request.state.user = user
    return user


def ensure_role(user: User, role: Role) -> User:
    """Raise 403 unless ``user`` carries ``role``."""

    if not user.has_role(role):
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
