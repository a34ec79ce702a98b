"""In-process storage used for development and tests."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from itertools import count
from typing import Iterator, Sequence

from .errors import TicketConflictError
from .models import Comment, Role, Ticket, User
from .repository import RecordNotFoundError


@dataclass
class InMemoryDatabase:
    """Shared tables for the in-memory repositories.

    Rows are stored as copies so callers never mutate stored state without
    calling ``save``. Dicts keep insertion order, which is also id order.
    """

    users: dict[int, User] = field(default_factory=dict)
    tickets: dict[int, Ticket] = field(default_factory=dict)
    comments: dict[int, Comment] = field(default_factory=dict)
    _user_ids: Iterator[int] = field(default_factory=lambda: count(1))
    _ticket_ids: Iterator[int] = field(default_factory=lambda: count(1))
    _comment_ids: Iterator[int] = field(default_factory=lambda: count(1))

    def next_user_id(self) -> int:
        return next(self._user_ids)

    def next_ticket_id(self) -> int:
        return next(self._ticket_ids)

    def next_comment_id(self) -> int:
        return next(self._comment_ids)


class InMemoryUserRepository:
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    async def get(self, user_id: int) -> User | None:
        return self._db.users.get(user_id)

    async def get_by_email(self, email: str) -> User | None:
        for user in self._db.users.values():
            if user.email == email:
                return user
        return None

    async def ensure(self, email: str, roles: Sequence[Role] = (Role.USER,)) -> User:
        existing = await self.get_by_email(email)
        user_id = existing.id if existing is not None else self._db.next_user_id()
        user = User(id=user_id, email=email, roles=tuple(roles))
        self._db.users[user_id] = user
        return user


class InMemoryTicketRepository:
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    async def add(self, ticket: Ticket) -> Ticket:
        ticket.id = self._db.next_ticket_id()
        ticket.version = 1
        self._db.tickets[ticket.id] = replace(ticket)
        return ticket

    async def get(self, ticket_id: int) -> Ticket | None:
        stored = self._db.tickets.get(ticket_id)
        return None if stored is None else replace(stored)

    async def save(self, ticket: Ticket) -> Ticket:
        stored = self._db.tickets.get(ticket.id)
        if stored is None:
            raise RecordNotFoundError(f"Ticket {ticket.id} not found")
        if stored.version != ticket.version:
            raise TicketConflictError(f"Ticket {ticket.id} was modified by another request")
        ticket.version += 1
        self._db.tickets[ticket.id] = replace(ticket)
        return ticket

    async def delete(self, ticket_id: int) -> bool:
        if self._db.tickets.pop(ticket_id, None) is None:
            return False
        # comments go with their ticket, mirroring ON DELETE CASCADE
        orphaned = [cid for cid, comment in self._db.comments.items() if comment.ticket_id == ticket_id]
        for comment_id in orphaned:
            del self._db.comments[comment_id]
        return True

    async def list(self, *, owner_id: int | None = None, assignee_id: int | None = None) -> list[Ticket]:
        tickets = []
        for ticket in self._db.tickets.values():
            if owner_id is not None and ticket.owner.id != owner_id:
                continue
            if assignee_id is not None and (ticket.assigned_to is None or ticket.assigned_to.id != assignee_id):
                continue
            tickets.append(replace(ticket))
        return tickets


class InMemoryCommentRepository:
    def __init__(self, database: InMemoryDatabase) -> None:
        self._db = database

    async def add(self, comment: Comment) -> Comment:
        comment.id = self._db.next_comment_id()
        self._db.comments[comment.id] = replace(comment)
        return comment

    async def get(self, comment_id: int, *, include_deleted: bool = False) -> Comment | None:
        stored = self._db.comments.get(comment_id)
        if stored is None or (stored.deleted and not include_deleted):
            return None
        return replace(stored)

    async def save(self, comment: Comment) -> Comment:
        if comment.id not in self._db.comments:
            raise RecordNotFoundError(f"Comment {comment.id} not found")
        self._db.comments[comment.id] = replace(comment)
        return comment

    async def list_for_ticket(self, ticket_id: int, *, include_deleted: bool = False) -> list[Comment]:
        return [
            replace(comment)
            for comment in self._db.comments.values()
            if comment.ticket_id == ticket_id and (include_deleted or not comment.deleted)
        ]
