from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from .errors import InvalidTicketArgumentError, TicketConflictError
from .models import Ticket, User
from .repository import TicketRepository
from .state import TicketLifecycle, TicketPriority, TicketStatus, parse_priority, parse_status

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise InvalidTicketArgumentError(f"{field_name} is required")
    return value


class TicketService:
    """High level orchestration for ticket lifecycle operations.

    Each mutating call validates its input, applies the change to the ticket in
    full and only then hands the ticket to the repository. A rejected call
    leaves the ticket untouched.
    """

    def __init__(self, repository: TicketRepository, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._repository = repository
        self._clock = clock

    async def create_ticket(
        self,
        *,
        owner: User,
        assigned_to: User | None,
        title: str,
        description: str,
        priority: str | TicketPriority,
        status: str | TicketStatus,
    ) -> Ticket:
        checked_priority = parse_priority(priority)
        checked_status = parse_status(status)
        _require_text(title, "Title")
        _require_text(description, "Description")

        now = self._clock()
        ticket = Ticket(
            owner=owner,
            title=title,
            description=description,
            priority=checked_priority,
            status=checked_status,
            created_at=now,
        )
        if assigned_to is not None:
            ticket.record_assignment(assigned_to, now)

        created = await self._repository.add(ticket)
        logger.info(
            "Ticket %s created by user %s (priority=%s, status=%s)",
            created.id,
            owner.id,
            created.priority.value,
            created.status.value,
        )
        return created

    async def update_ticket(
        self,
        ticket: Ticket,
        *,
        description: str | None = None,
        priority: str | TicketPriority | None = None,
    ) -> Ticket:
        new_priority = parse_priority(priority) if priority is not None else None
        if description is not None:
            _require_text(description, "Description")

        if description is not None:
            ticket.description = description
        if new_priority is not None:
            ticket.priority = new_priority

        return await self._save(ticket)

    async def delete_ticket(self, ticket: Ticket) -> bool:
        await self._repository.delete(ticket.id)
        logger.info("Ticket %s deleted", ticket.id)
        return True

    async def assign_ticket(self, ticket: Ticket, user: User) -> Ticket:
        ticket.record_assignment(user, self._clock())
        logger.info("Ticket %s assigned to user %s", ticket.id, user.id)
        return await self._save(ticket)

    async def unassign_ticket(self, ticket: Ticket) -> Ticket:
        ticket.assigned_to = None
        logger.info("Ticket %s unassigned", ticket.id)
        return await self._save(ticket)

    async def start_ticket(self, ticket: Ticket, current_user: User) -> Ticket:
        return await self._transition(ticket, current_user, TicketLifecycle.start)

    async def close_ticket(self, ticket: Ticket, current_user: User) -> Ticket:
        return await self._transition(ticket, current_user, TicketLifecycle.close)

    async def get_ticket(self, ticket_id: int) -> Ticket | None:
        return await self._repository.get(ticket_id)

    async def get_all_tickets(self) -> list[Ticket]:
        return await self._repository.list()

    async def get_tickets_by_owner(self, owner: User) -> list[Ticket]:
        return await self._repository.list(owner_id=owner.id)

    async def get_tickets_by_assignee(self, assignee: User) -> list[Ticket]:
        return await self._repository.list(assignee_id=assignee.id)

    async def _transition(
        self,
        ticket: Ticket,
        actor: User,
        apply: Callable[[Ticket, User], TicketStatus],
    ) -> Ticket:
        previous = ticket.status
        try:
            new_status = apply(ticket, actor)
        except InvalidTicketArgumentError:
            logger.warning("User %s may not change status of ticket %s", actor.id, ticket.id)
            raise
        logger.info("Ticket %s moved %s -> %s by user %s", ticket.id, previous.value, new_status.value, actor.id)
        return await self._save(ticket)

    async def _save(self, ticket: Ticket) -> Ticket:
        try:
            return await self._repository.save(ticket)
        except TicketConflictError:
            logger.warning("Ticket %s changed concurrently; version %s is stale", ticket.id, ticket.version)
            raise
