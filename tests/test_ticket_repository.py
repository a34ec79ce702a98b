from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from ticketdesk.tickets.errors import TicketConflictError
from ticketdesk.tickets.models import Comment, Role, Ticket, User
from ticketdesk.tickets.repository import (
    PostgresCommentRepository,
    PostgresSchema,
    PostgresTicketRepository,
    PostgresUserRepository,
    RecordNotFoundError,
)
from ticketdesk.tickets.state import TicketPriority, TicketStatus


class DummyAcquire:
    def __init__(self, connection):
        self._connection = connection

    async def __aenter__(self):
        return self._connection

    async def __aexit__(self, exc_type, exc, tb):
        return False


class DummyPool:
    def __init__(self, connection):
        self._connection = connection

    def acquire(self):
        return DummyAcquire(self._connection)


def _ticket_row(now, **overrides):
    row = {
        "id": 10,
        "title": "Deneme",
        "description": "Body",
        "priority": "high",
        "status": "waiting",
        "created_at": now,
        "first_assigned_at": now,
        "last_assigned_at": now,
        "version": 3,
        "owner_id": 1,
        "owner_email": "user1@test.com",
        "owner_roles": ["user"],
        "assignee_id": 2,
        "assignee_email": "user2@test.com",
        "assignee_roles": ["user", "admin"],
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_ensure_schema_creates_tables():
    connection = AsyncMock()
    await PostgresSchema(DummyPool(connection)).ensure()

    executed = [call.args[0] for call in connection.execute.await_args_list]
    assert len(executed) == 3
    assert "CREATE TABLE IF NOT EXISTS users" in executed[0]
    assert "CREATE TABLE IF NOT EXISTS tickets" in executed[1]
    assert "ON DELETE CASCADE" in executed[2]


@pytest.mark.asyncio
async def test_add_ticket_sets_generated_id():
    now = datetime.now(timezone.utc)
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(return_value={"id": 42, "version": 1})
    repository = PostgresTicketRepository(DummyPool(connection))
    ticket = Ticket(
        owner=User(1, "user1@test.com"),
        assigned_to=None,
        title="Title",
        description="Body",
        priority=TicketPriority.LOW,
        status=TicketStatus.PENDING,
        created_at=now,
    )

    saved = await repository.add(ticket)

    assert saved.id == 42
    assert saved.version == 1
    args = connection.fetchrow.await_args.args
    assert args[1:7] == (1, None, "Title", "Body", "low", "pending")


@pytest.mark.asyncio
async def test_get_ticket_maps_owner_and_assignee():
    now = datetime.now(timezone.utc)
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(return_value=_ticket_row(now))
    repository = PostgresTicketRepository(DummyPool(connection))

    ticket = await repository.get(10)

    assert ticket is not None
    assert ticket.priority is TicketPriority.HIGH
    assert ticket.status is TicketStatus.WAITING
    assert ticket.owner == User(1, "user1@test.com", (Role.USER,))
    assert ticket.assigned_to.has_role(Role.ADMIN)
    assert ticket.version == 3


@pytest.mark.asyncio
async def test_list_passes_filters_and_handles_unassigned_rows():
    now = datetime.now(timezone.utc)
    row = _ticket_row(now, assignee_id=None, assignee_email=None, assignee_roles=None)
    connection = AsyncMock()
    connection.fetch = AsyncMock(return_value=[row])
    repository = PostgresTicketRepository(DummyPool(connection))

    tickets = await repository.list(owner_id=1)

    assert tickets[0].assigned_to is None
    assert connection.fetch.await_args.args[1:] == (1, None)


@pytest.mark.asyncio
async def test_save_missing_ticket_raises():
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(return_value=None)
    repository = PostgresTicketRepository(DummyPool(connection))
    ticket = Ticket(
        id=99,
        owner=User(1, "user1@test.com"),
        title="t",
        description="d",
        priority=TicketPriority.NORMAL,
        status=TicketStatus.DONE,
        created_at=datetime.now(timezone.utc),
    )

    with pytest.raises(RecordNotFoundError):
        await repository.save(ticket)


@pytest.mark.asyncio
async def test_save_sends_expected_version_and_takes_the_new_one():
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(return_value={"version": 4})
    repository = PostgresTicketRepository(DummyPool(connection))
    ticket = Ticket(
        id=10,
        owner=User(1, "user1@test.com"),
        title="t",
        description="d",
        priority=TicketPriority.NORMAL,
        status=TicketStatus.DONE,
        created_at=datetime.now(timezone.utc),
        version=3,
    )

    await repository.save(ticket)

    sql, *args = connection.fetchrow.await_args.args
    assert "AND version = $8" in sql
    assert args[0] == 10
    assert args[-1] == 3
    assert ticket.version == 4


@pytest.mark.asyncio
async def test_save_of_stale_ticket_raises_conflict():
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(side_effect=[None, {"?column?": 1}])
    repository = PostgresTicketRepository(DummyPool(connection))
    ticket = Ticket(
        id=10,
        owner=User(1, "user1@test.com"),
        title="t",
        description="d",
        priority=TicketPriority.NORMAL,
        status=TicketStatus.WAITING,
        created_at=datetime.now(timezone.utc),
        version=2,
    )

    with pytest.raises(TicketConflictError):
        await repository.save(ticket)

    assert ticket.version == 2


@pytest.mark.asyncio
async def test_delete_reports_whether_a_row_was_removed():
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(side_effect=[{"id": 1}, None])
    repository = PostgresTicketRepository(DummyPool(connection))

    assert await repository.delete(1) is True
    assert await repository.delete(1) is False


@pytest.mark.asyncio
async def test_comment_queries_forward_include_deleted_flag():
    now = datetime.now(timezone.utc)
    row = {
        "id": 3,
        "ticket_id": 10,
        "content": "hello",
        "created_at": now,
        "deleted": True,
        "author_id": 1,
        "author_email": "user1@test.com",
        "author_roles": ["user"],
    }
    connection = AsyncMock()
    connection.fetch = AsyncMock(return_value=[row])
    repository = PostgresCommentRepository(DummyPool(connection))

    comments = await repository.list_for_ticket(10, include_deleted=True)

    assert comments[0].deleted is True
    assert comments[0].author.email == "user1@test.com"
    assert connection.fetch.await_args.args[1:] == (10, True)


@pytest.mark.asyncio
async def test_comment_save_writes_deleted_flag():
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(return_value={"id": 3})
    repository = PostgresCommentRepository(DummyPool(connection))
    comment = Comment(
        id=3,
        ticket_id=10,
        author=User(1, "user1@test.com"),
        content="hello",
        created_at=datetime.now(timezone.utc),
        deleted=True,
    )

    await repository.save(comment)

    assert connection.fetchrow.await_args.args[1:] == (3, "hello", True)


@pytest.mark.asyncio
async def test_user_upsert_sends_role_values():
    connection = AsyncMock()
    connection.fetchrow = AsyncMock(return_value={"id": 7, "email": "a@test.com", "roles": ["user", "admin"]})
    repository = PostgresUserRepository(DummyPool(connection))

    user = await repository.ensure("a@test.com", (Role.USER, Role.ADMIN))

    assert user == User(7, "a@test.com", (Role.USER, Role.ADMIN))
    assert connection.fetchrow.await_args.args[1:] == ("a@test.com", ["user", "admin"])
