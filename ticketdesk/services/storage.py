from __future__ import annotations

import logging
from dataclasses import dataclass

from ticketdesk.core.config import Settings
from ticketdesk.tickets.memory import (
    InMemoryCommentRepository,
    InMemoryDatabase,
    InMemoryTicketRepository,
    InMemoryUserRepository,
)
from ticketdesk.tickets.models import Role, User
from ticketdesk.tickets.repository import (
    CommentRepository,
    PostgresCommentRepository,
    PostgresSchema,
    PostgresTicketRepository,
    PostgresUserRepository,
    TicketRepository,
    UserRepository,
)

from .postgres import PostgresPool

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Storage:
    """Repositories for one configured backend."""

    users: UserRepository
    tickets: TicketRepository
    comments: CommentRepository
    pool: PostgresPool | None = None

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()


async def build_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "postgres":
        postgres = PostgresPool(
            settings.postgres_dsn,
            min_size=settings.postgres_pool_min_size,
            max_size=settings.postgres_pool_max_size,
        )
        pool = await postgres.get_pool()
        await PostgresSchema(pool).ensure()
        storage = Storage(
            users=PostgresUserRepository(pool),
            tickets=PostgresTicketRepository(pool),
            comments=PostgresCommentRepository(pool),
            pool=postgres,
        )
    else:
        database = InMemoryDatabase()
        storage = Storage(
            users=InMemoryUserRepository(database),
            tickets=InMemoryTicketRepository(database),
            comments=InMemoryCommentRepository(database),
        )
    logger.info("Using %s storage backend", settings.storage_backend)
    return storage


async def register_token_users(settings: Settings, users: UserRepository) -> dict[str, User]:
    """Make sure every configured token maps onto a stored user."""

    admins = {email.lower() for email in settings.admin_emails}
    registered: dict[str, User] = {}
    for token, email in settings.auth_tokens.items():
        roles = (Role.USER, Role.ADMIN) if email.lower() in admins else (Role.USER,)
        registered[token] = await users.ensure(email, roles)
    return registered
