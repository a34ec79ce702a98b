from __future__ import annotations

from typing import Any, Mapping, Protocol, Sequence

import asyncpg

from .errors import TicketConflictError
from .models import Comment, Role, Ticket, User
from .state import TicketPriority, TicketStatus


class UserRepository(Protocol):
    async def get(self, user_id: int) -> User | None:
        ...

    async def get_by_email(self, email: str) -> User | None:
        ...

    async def ensure(self, email: str, roles: Sequence[Role] = (Role.USER,)) -> User:
        ...


class TicketRepository(Protocol):
    async def add(self, ticket: Ticket) -> Ticket:
        ...

    async def get(self, ticket_id: int) -> Ticket | None:
        ...

    async def save(self, ticket: Ticket) -> Ticket:
        ...

    async def delete(self, ticket_id: int) -> bool:
        ...

    async def list(self, *, owner_id: int | None = None, assignee_id: int | None = None) -> list[Ticket]:
        ...


class CommentRepository(Protocol):
    async def add(self, comment: Comment) -> Comment:
        ...

    async def get(self, comment_id: int, *, include_deleted: bool = False) -> Comment | None:
        ...

    async def save(self, comment: Comment) -> Comment:
        ...

    async def list_for_ticket(self, ticket_id: int, *, include_deleted: bool = False) -> list[Comment]:
        ...


class RecordNotFoundError(LookupError):
    """Raised when saving a row that no longer exists."""


_USER_COLUMNS = "id, email, roles"

_TICKET_SELECT = """
SELECT t.id, t.title, t.description, t.priority, t.status,
       t.created_at, t.first_assigned_at, t.last_assigned_at, t.version,
       o.id AS owner_id, o.email AS owner_email, o.roles AS owner_roles,
       a.id AS assignee_id, a.email AS assignee_email, a.roles AS assignee_roles
FROM tickets t
JOIN users o ON o.id = t.owner_id
LEFT JOIN users a ON a.id = t.assigned_to_id
"""

_COMMENT_SELECT = """
SELECT c.id, c.ticket_id, c.content, c.created_at, c.deleted,
       u.id AS author_id, u.email AS author_email, u.roles AS author_roles
FROM comments c
JOIN users u ON u.id = c.author_id
"""


class PostgresSchema:
    """DDL for the users, tickets and comments tables."""

    _CREATE_USERS_SQL = """
    CREATE TABLE IF NOT EXISTS users (
        id BIGSERIAL PRIMARY KEY,
        email TEXT NOT NULL UNIQUE,
        roles TEXT[] NOT NULL DEFAULT ARRAY['user'],
        created_at TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """

    _CREATE_TICKETS_SQL = """
    CREATE TABLE IF NOT EXISTS tickets (
        id BIGSERIAL PRIMARY KEY,
        owner_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        assigned_to_id BIGINT NULL REFERENCES users(id) ON DELETE SET NULL,
        title VARCHAR(255) NOT NULL,
        description TEXT NOT NULL,
        priority VARCHAR(50) NOT NULL,
        status VARCHAR(50) NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        first_assigned_at TIMESTAMPTZ NULL,
        last_assigned_at TIMESTAMPTZ NULL,
        version INTEGER NOT NULL DEFAULT 1
    )
    """

    _CREATE_COMMENTS_SQL = """
    CREATE TABLE IF NOT EXISTS comments (
        id BIGSERIAL PRIMARY KEY,
        ticket_id BIGINT NOT NULL REFERENCES tickets(id) ON DELETE CASCADE,
        author_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
        content TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL,
        deleted BOOLEAN NOT NULL DEFAULT FALSE
    )
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def ensure(self) -> None:
        async with self._pool.acquire() as connection:
            await connection.execute(self._CREATE_USERS_SQL)
            await connection.execute(self._CREATE_TICKETS_SQL)
            await connection.execute(self._CREATE_COMMENTS_SQL)


class PostgresUserRepository:
    """User lookups backed by the ``users`` table."""

    _SELECT_BY_ID_SQL = f"SELECT {_USER_COLUMNS} FROM users WHERE id = $1"
    _SELECT_BY_EMAIL_SQL = f"SELECT {_USER_COLUMNS} FROM users WHERE email = $1"
    _UPSERT_SQL = f"""
    INSERT INTO users (email, roles)
    VALUES ($1, $2)
    ON CONFLICT (email) DO UPDATE SET roles = EXCLUDED.roles
    RETURNING {_USER_COLUMNS}
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def get(self, user_id: int) -> User | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_BY_ID_SQL, user_id)
        return None if row is None else _row_to_user(row)

    async def get_by_email(self, email: str) -> User | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_BY_EMAIL_SQL, email)
        return None if row is None else _row_to_user(row)

    async def ensure(self, email: str, roles: Sequence[Role] = (Role.USER,)) -> User:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._UPSERT_SQL, email, [role.value for role in roles])
        if row is None:
            raise RuntimeError(f"Failed to upsert user {email}")
        return _row_to_user(row)


class PostgresTicketRepository:
    """Ticket rows, loaded together with their owner and assignee."""

    _INSERT_SQL = """
    INSERT INTO tickets (owner_id, assigned_to_id, title, description, priority, status,
                         created_at, first_assigned_at, last_assigned_at)
    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
    RETURNING id, version
    """

    _UPDATE_SQL = """
    UPDATE tickets
    SET assigned_to_id = $2,
        description = $3,
        priority = $4,
        status = $5,
        first_assigned_at = $6,
        last_assigned_at = $7,
        version = version + 1
    WHERE id = $1 AND version = $8
    RETURNING version
    """

    _EXISTS_SQL = "SELECT 1 FROM tickets WHERE id = $1"

    _SELECT_SQL = _TICKET_SELECT + "WHERE t.id = $1"

    _LIST_SQL = (
        _TICKET_SELECT
        + """
    WHERE ($1::BIGINT IS NULL OR t.owner_id = $1)
      AND ($2::BIGINT IS NULL OR t.assigned_to_id = $2)
    ORDER BY t.id ASC
    """
    )

    _DELETE_SQL = "DELETE FROM tickets WHERE id = $1 RETURNING id"

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def add(self, ticket: Ticket) -> Ticket:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(
                self._INSERT_SQL,
                ticket.owner.id,
                None if ticket.assigned_to is None else ticket.assigned_to.id,
                ticket.title,
                ticket.description,
                ticket.priority.value,
                ticket.status.value,
                ticket.created_at,
                ticket.first_assigned_at,
                ticket.last_assigned_at,
            )
        if row is None:
            raise RuntimeError("Failed to insert ticket")
        ticket.id = int(row["id"])
        ticket.version = int(row["version"])
        return ticket

    async def get(self, ticket_id: int) -> Ticket | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_SQL, ticket_id)
        return None if row is None else self._row_to_ticket(row)

    async def save(self, ticket: Ticket) -> Ticket:
        """Write ``ticket`` back if nobody saved it since it was loaded."""

        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(
                self._UPDATE_SQL,
                ticket.id,
                None if ticket.assigned_to is None else ticket.assigned_to.id,
                ticket.description,
                ticket.priority.value,
                ticket.status.value,
                ticket.first_assigned_at,
                ticket.last_assigned_at,
                ticket.version,
            )
            exists = row is not None or await connection.fetchrow(self._EXISTS_SQL, ticket.id) is not None
        if not exists:
            raise RecordNotFoundError(f"Ticket {ticket.id} not found")
        if row is None:
            raise TicketConflictError(f"Ticket {ticket.id} was modified by another request")
        ticket.version = int(row["version"])
        return ticket

    async def delete(self, ticket_id: int) -> bool:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._DELETE_SQL, ticket_id)
        return row is not None

    async def list(self, *, owner_id: int | None = None, assignee_id: int | None = None) -> list[Ticket]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_SQL, owner_id, assignee_id)
        return [self._row_to_ticket(row) for row in rows]

    @staticmethod
    def _row_to_ticket(row: Mapping[str, Any]) -> Ticket:
        assignee = None
        if row["assignee_id"] is not None:
            assignee = _row_to_user(row, prefix="assignee_")
        return Ticket(
            id=int(row["id"]),
            owner=_row_to_user(row, prefix="owner_"),
            assigned_to=assignee,
            title=str(row["title"]),
            description=str(row["description"]),
            priority=TicketPriority(str(row["priority"])),
            status=TicketStatus(str(row["status"])),
            created_at=row["created_at"],
            first_assigned_at=row["first_assigned_at"],
            last_assigned_at=row["last_assigned_at"],
            version=int(row["version"]),
        )


class PostgresCommentRepository:
    """Comment rows; soft-deleted rows are hidden unless explicitly requested."""

    _INSERT_SQL = """
    INSERT INTO comments (ticket_id, author_id, content, created_at, deleted)
    VALUES ($1, $2, $3, $4, $5)
    RETURNING id
    """

    _UPDATE_SQL = "UPDATE comments SET content = $2, deleted = $3 WHERE id = $1 RETURNING id"

    _SELECT_SQL = _COMMENT_SELECT + "WHERE c.id = $1 AND ($2 OR NOT c.deleted)"

    _LIST_SQL = _COMMENT_SELECT + "WHERE c.ticket_id = $1 AND ($2 OR NOT c.deleted) ORDER BY c.id ASC"

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    async def add(self, comment: Comment) -> Comment:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(
                self._INSERT_SQL,
                comment.ticket_id,
                comment.author.id,
                comment.content,
                comment.created_at,
                comment.deleted,
            )
        if row is None:
            raise RuntimeError("Failed to insert comment")
        comment.id = int(row["id"])
        return comment

    async def get(self, comment_id: int, *, include_deleted: bool = False) -> Comment | None:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._SELECT_SQL, comment_id, include_deleted)
        return None if row is None else self._row_to_comment(row)

    async def save(self, comment: Comment) -> Comment:
        async with self._pool.acquire() as connection:
            row = await connection.fetchrow(self._UPDATE_SQL, comment.id, comment.content, comment.deleted)
        if row is None:
            raise RecordNotFoundError(f"Comment {comment.id} not found")
        return comment

    async def list_for_ticket(self, ticket_id: int, *, include_deleted: bool = False) -> list[Comment]:
        async with self._pool.acquire() as connection:
            rows = await connection.fetch(self._LIST_SQL, ticket_id, include_deleted)
        return [self._row_to_comment(row) for row in rows]

    @staticmethod
    def _row_to_comment(row: Mapping[str, Any]) -> Comment:
        return Comment(
            id=int(row["id"]),
            ticket_id=int(row["ticket_id"]),
            author=_row_to_user(row, prefix="author_"),
            content=str(row["content"]),
            created_at=row["created_at"],
            deleted=bool(row["deleted"]),
        )


def _row_to_user(row: Mapping[str, Any], *, prefix: str = "") -> User:
    roles = row[f"{prefix}roles"] or [Role.USER.value]
    return User(
        id=int(row[f"{prefix}id"]),
        email=str(row[f"{prefix}email"]),
        roles=tuple(Role(str(role)) for role in roles),
    )
