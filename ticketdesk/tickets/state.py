from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from .errors import InvalidTicketArgumentError

if TYPE_CHECKING:
    from .models import Ticket, User


class TicketStatus(str, Enum):
    """Supported states for a ticket's lifecycle."""

    PENDING = "pending"
    WAITING = "waiting"
    IN_PROGRESS = "in-progress"
    DONE = "done"


class TicketPriority(str, Enum):
    """Supported ticket priorities."""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


def parse_status(value: str | TicketStatus) -> TicketStatus:
    try:
        return TicketStatus(value)
    except ValueError:
        raise InvalidTicketArgumentError("Invalid status") from None


def parse_priority(value: str | TicketPriority) -> TicketPriority:
    try:
        return TicketPriority(value)
    except ValueError:
        raise InvalidTicketArgumentError("Invalid priority") from None


class TicketLifecycle:
    """Guard the status transitions reachable through start and close.

    Any status may move to ``in-progress`` (start) or ``done`` (close); the only
    condition is that the acting user is the ticket's current assignee. Status
    is never changed through a regular update.
    """

    NOT_ASSIGNED_MESSAGE = "Ticket is not assigned to current user"

    @classmethod
    def can_transition(cls, ticket: Ticket, actor: User) -> bool:
        return ticket.is_assigned_to(actor)

    @classmethod
    def assert_transition(cls, ticket: Ticket, actor: User) -> None:
        if not cls.can_transition(ticket, actor):
            raise InvalidTicketArgumentError(cls.NOT_ASSIGNED_MESSAGE)

    @classmethod
    def start(cls, ticket: Ticket, actor: User) -> TicketStatus:
        cls.assert_transition(ticket, actor)
        ticket.status = TicketStatus.IN_PROGRESS
        return ticket.status

    @classmethod
    def close(cls, ticket: Ticket, actor: User) -> TicketStatus:
        cls.assert_transition(ticket, actor)
        ticket.status = TicketStatus.DONE
        return ticket.status
