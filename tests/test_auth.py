import pytest
from fastapi import HTTPException

from ticketdesk.core.config import Settings
from ticketdesk.dependencies.auth import ensure_role, resolve_user_from_token
from ticketdesk.services.storage import register_token_users
from ticketdesk.tickets.models import Role, User


def test_ensure_role_allows_authorized_user():
    user = User(1, "alice@test.com", (Role.USER, Role.ADMIN))
    assert ensure_role(user, Role.ADMIN) is user


def test_ensure_role_rejects_unauthorized_user():
    with pytest.raises(HTTPException) as exc:
        ensure_role(User(2, "bob@test.com"), Role.ADMIN)

    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"


@pytest.mark.asyncio
async def test_token_resolves_to_stored_user(user_repository):
    stored = await user_repository.ensure("alice@test.com")

    user = await resolve_user_from_token("alice-token", {"alice-token": stored.id}, user_repository)

    assert user == stored


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "unknown", "orphan"])
async def test_unresolvable_tokens_are_unauthorized(user_repository, token):
    with pytest.raises(HTTPException) as exc:
        await resolve_user_from_token(token, {"orphan": 404}, user_repository)

    assert exc.value.status_code == 401


@pytest.mark.asyncio
async def test_register_token_users_grants_admin_by_email(user_repository):
    settings = Settings(
        auth_tokens={"a": "alice@test.com", "b": "Boss@test.com"},
        admin_emails=("boss@test.com",),
    )

    registered = await register_token_users(settings, user_repository)

    assert not registered["a"].has_role(Role.ADMIN)
    assert registered["b"].has_role(Role.ADMIN)
    assert await user_repository.get_by_email("Boss@test.com") == registered["b"]
