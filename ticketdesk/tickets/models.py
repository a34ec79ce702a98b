from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .state import TicketPriority, TicketStatus


class Role(str, Enum):
    """Roles carried by a user identity."""

    USER = "user"
    ADMIN = "admin"


@dataclass(slots=True)
class User:
    """Identity referenced by tickets and comments."""

    id: int
    email: str
    roles: tuple[Role, ...] = (Role.USER,)

    def has_role(self, role: Role) -> bool:
        return role in self.roles

    def same_as(self, other: User | None) -> bool:
        return other is not None and other.id == self.id


@dataclass(slots=True)
class Ticket:
    """A trackable unit of work with an owner and an optional assignee."""

    owner: User
    title: str
    description: str
    priority: TicketPriority
    status: TicketStatus
    created_at: datetime
    assigned_to: User | None = None
    first_assigned_at: datetime | None = None
    last_assigned_at: datetime | None = None
    id: int | None = None
    # bumped by the store on every successful save
    version: int = 1

    def is_owned_by(self, user: User) -> bool:
        return user.same_as(self.owner)

    def is_assigned_to(self, user: User) -> bool:
        return user.same_as(self.assigned_to)

    def record_assignment(self, user: User, at: datetime) -> None:
        """Point the ticket at ``user``; the first assignment time is only ever set once."""

        self.assigned_to = user
        self.last_assigned_at = at
        if self.first_assigned_at is None:
            self.first_assigned_at = at


@dataclass(slots=True)
class Comment:
    """Comment left on a ticket by its owner or assignee."""

    ticket_id: int
    author: User
    content: str
    created_at: datetime
    deleted: bool = False
    id: int | None = None

    def is_authored_by(self, user: User) -> bool:
        return user.same_as(self.author)

    def mark_deleted(self) -> None:
        self.deleted = True
