from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from ticketdesk.tickets.memory import (
    InMemoryCommentRepository,
    InMemoryDatabase,
    InMemoryTicketRepository,
    InMemoryUserRepository,
)
from ticketdesk.tickets.models import Role, User


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
        self.calls = 0

    def __call__(self) -> datetime:
        value = self.current + timedelta(minutes=self.calls)
        self.calls += 1
        return value


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def owner() -> User:
    return User(id=1, email="user1@test.com")


@pytest.fixture
def assignee() -> User:
    return User(id=2, email="user2@test.com")


@pytest.fixture
def outsider() -> User:
    return User(id=3, email="user3@test.com")


@pytest.fixture
def admin() -> User:
    return User(id=4, email="admin@test.com", roles=(Role.USER, Role.ADMIN))


@pytest.fixture
def database() -> InMemoryDatabase:
    return InMemoryDatabase()


@pytest.fixture
def user_repository(database: InMemoryDatabase) -> InMemoryUserRepository:
    return InMemoryUserRepository(database)


@pytest.fixture
def ticket_repository(database: InMemoryDatabase) -> InMemoryTicketRepository:
    return InMemoryTicketRepository(database)


@pytest.fixture
def comment_repository(database: InMemoryDatabase) -> InMemoryCommentRepository:
    return InMemoryCommentRepository(database)
